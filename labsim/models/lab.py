"""
Lab, progression and resource models.

One lab per owner. Progression (level, experience, upgrade ranks) and the
resource pool are separate rows so the pool can be row-locked for the
read-check-write of every start/complete transaction.
"""

from sqlalchemy import CheckConstraint, Float, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from labsim.models.base_model import OwnerScopedModel


class Lab(OwnerScopedModel):
    __tablename__ = "labs"

    name: Mapped[str] = mapped_column(String(120), nullable=False)
    founder_type: Mapped[str] = mapped_column(String(30), nullable=False)

    __table_args__ = (UniqueConstraint("owner_id", name="uq_labs_owner"),)


class OwnerProgression(OwnerScopedModel):
    """Per-player level, experience and upgrade ranks."""

    __tablename__ = "owner_progression"

    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    experience: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    upgrade_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    queue_rank: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    staff_rank: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    compute_rank: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    speed_rank: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    money_multiplier_rank: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("owner_id", name="uq_owner_progression_owner"),
        CheckConstraint("level >= 1", name="ck_owner_progression_level"),
        CheckConstraint("upgrade_points >= 0", name="ck_owner_progression_up"),
    )

    def rank_for(self, upgrade_type) -> int:
        return getattr(self, f"{upgrade_type.value}_rank")

    def set_rank(self, upgrade_type, rank: int) -> None:
        setattr(self, f"{upgrade_type.value}_rank", rank)


class ResourcePool(OwnerScopedModel):
    """Mutable per-owner ledger. Never negative."""

    __tablename__ = "resource_pools"

    cash: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    research_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    staff_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Permanent research perks, in percent
    speed_bonus: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    money_bonus: Mapped[float] = mapped_column(Float, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("owner_id", name="uq_resource_pools_owner"),
        CheckConstraint("cash >= 0", name="ck_resource_pools_cash"),
        CheckConstraint("research_points >= 0", name="ck_resource_pools_rp"),
        CheckConstraint("staff_count >= 0", name="ck_resource_pools_staff"),
    )
