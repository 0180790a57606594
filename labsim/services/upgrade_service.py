"""
Upgrade service - spend upgrade points on ranks.
"""

import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from labsim.core.catalog import ContentCatalog, UpgradeType
from labsim.errors import AdmissionDenied, NotFound, PrerequisiteUnmet
from labsim.models.notification import NotificationKind
from labsim.repositories.lab_repository import LabRepository
from labsim.schemas.progression import UpgradePurchaseResult, UpgradeRead
from labsim.services.job_lifecycle_service import JobLifecycleService
from labsim.services.notification_service import NotificationService
from labsim.services.owner_context import load_owner_context
from labsim.services.time_authority import TimeAuthority

logger = logging.getLogger(__name__)


class UpgradeService:
    def __init__(self, db: AsyncSession, catalog: ContentCatalog, time_authority: Optional[TimeAuthority] = None):
        self.db = db
        self.catalog = catalog
        self.time = time_authority or TimeAuthority(db)
        self.labs = LabRepository(db)

    async def list_upgrades(self, owner_id: str) -> List[UpgradeRead]:
        progression = await self.labs.get_progression(owner_id)
        if progression is None:
            raise NotFound(f"No lab found for owner {owner_id}")

        upgrades = []
        for upgrade_type in UpgradeType:
            definition = self.catalog.upgrades[upgrade_type]
            rank = progression.rank_for(upgrade_type)
            is_max = rank >= definition.max_rank
            required = None if is_max else self.catalog.required_level_for_rank(rank + 1)
            if is_max:
                lock_reason = "Max rank"
            elif progression.level < required:
                lock_reason = f"Requires level {required}"
            elif progression.upgrade_points < 1:
                lock_reason = "No upgrade points"
            else:
                lock_reason = None
            upgrades.append(
                UpgradeRead(
                    id=upgrade_type.value,
                    name=definition.name,
                    description=definition.description,
                    unit=definition.unit,
                    current_rank=rank,
                    max_rank=definition.max_rank,
                    current_value=self.catalog.upgrade_value(upgrade_type, rank),
                    next_value=None if is_max else self.catalog.upgrade_value(upgrade_type, rank + 1),
                    can_upgrade=lock_reason is None,
                    is_max_rank=is_max,
                    lock_reason=lock_reason,
                    required_level_for_next=required,
                )
            )
        return upgrades

    async def purchase(self, owner_id: str, upgrade_type: UpgradeType) -> UpgradePurchaseResult:
        """
        Spend one upgrade point to raise ``upgrade_type`` by one rank.

        A queue or compute rank can make room for queued jobs, which are
        promoted in the same transaction.
        """
        ctx = await load_owner_context(self.db, owner_id)
        progression = ctx.progression

        definition = self.catalog.upgrades[upgrade_type]
        rank = progression.rank_for(upgrade_type)
        if rank >= definition.max_rank:
            raise AdmissionDenied("max_rank", f"{definition.name} is already at max rank")
        next_rank = rank + 1
        required = self.catalog.required_level_for_rank(next_rank)
        if progression.level < required:
            raise PrerequisiteUnmet(
                f"{definition.name} rank {next_rank} requires level {required}",
                "level",
                details={"required_level": required, "level": progression.level},
            )
        if progression.upgrade_points < 1:
            raise AdmissionDenied("no_upgrade_points", "No upgrade points available")

        progression.upgrade_points -= 1
        progression.set_rank(upgrade_type, next_rank)
        await self.db.flush()

        now_eff = await self.time.effective_now(owner_id)
        new_value = self.catalog.upgrade_value(upgrade_type, next_rank)
        value_label = f"{new_value} {definition.unit}".strip()
        await NotificationService(self.db, self.catalog).notify(
            owner_id,
            NotificationKind.UNLOCK,
            f"{definition.name} upgraded",
            f"{definition.name} is now rank {next_rank} ({value_label}).",
            now_eff,
            deep_link={"view": "lab", "target": "upgrades"},
        )
        logger.info(f"Owner {owner_id} upgraded {upgrade_type.value} to rank {next_rank}")

        if upgrade_type in (UpgradeType.QUEUE, UpgradeType.COMPUTE):
            lifecycle = JobLifecycleService(self.db, self.catalog, time_authority=self.time)
            await lifecycle.promote_queued(ctx, now_eff)
        return UpgradePurchaseResult(
            upgrade_type=upgrade_type,
            new_rank=next_rank,
            new_value=new_value,
            upgrade_points=progression.upgrade_points,
        )
