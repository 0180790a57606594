"""
ScoredArtifact model.

Immutable, versioned output of a training job. Versions are strictly
increasing per (owner, blueprint).
"""

import uuid

from sqlalchemy import BigInteger, Index, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from labsim.models.base_model import OwnerScopedModel


class Visibility:
    PUBLIC = "public"
    PRIVATE = "private"


class ScoredArtifact(OwnerScopedModel):
    __tablename__ = "scored_artifacts"

    job_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    blueprint_id: Mapped[str] = mapped_column(String(100), nullable=False)
    model_type: Mapped[str] = mapped_column(String(10), nullable=False)
    name: Mapped[str] = mapped_column(String(160), nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    trained_at_ms: Mapped[int] = mapped_column(BigInteger, nullable=False)
    visibility: Mapped[str] = mapped_column(String(10), nullable=False, default=Visibility.PUBLIC)

    __table_args__ = (
        UniqueConstraint("owner_id", "blueprint_id", "version", name="uq_scored_artifacts_version"),
        Index("ix_scored_artifacts_blueprint_visibility", "blueprint_id", "visibility"),
    )
