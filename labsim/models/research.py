"""
Research models.

ResearchPurchase is the one-time "purchased" marker per (owner, node); its
unique constraint backs the existence check that keeps unlock effects
idempotent. OwnerUnlocks holds the owner's unlock sets.
"""

import uuid
from typing import List, Optional

from sqlalchemy import JSON, BigInteger, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from labsim.models.base_model import OwnerScopedModel


class ResearchPurchase(OwnerScopedModel):
    __tablename__ = "research_purchases"

    node_id: Mapped[str] = mapped_column(String(100), nullable=False)
    purchased_at_ms: Mapped[int] = mapped_column(BigInteger, nullable=False)
    job_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)

    __table_args__ = (UniqueConstraint("owner_id", "node_id", name="uq_research_purchases_owner_node"),)


class OwnerUnlocks(OwnerScopedModel):
    __tablename__ = "owner_unlocks"

    blueprint_ids: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    job_ids: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    system_flags: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    __table_args__ = (UniqueConstraint("owner_id", name="uq_owner_unlocks_owner"),)
