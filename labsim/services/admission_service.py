"""
Admission control.

Decides whether a requested job starts now, waits in the owner's backlog, or
is refused. Gates are evaluated in a fixed order: currency and compute
(every shortfall reported together), then staff capacity for hires,
cooldown and finally parallel/backlog capacity. A request never starts
ahead of older queued jobs.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from labsim.core.catalog import ContentCatalog, CostResource, FounderType, JobDefinition, JobKind, UpgradeType
from labsim.errors import AdmissionDenied, InsufficientResource, Shortfall
from labsim.models.job import Job
from labsim.models.lab import OwnerProgression, ResourcePool
from labsim.services.bonus_composer import OwnerBonuses

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CapacitySnapshot:
    parallel_capacity: int
    in_flight: int
    queue_capacity: int
    queued: int
    compute_capacity: int
    compute_used: int
    staff_capacity: int
    staff_used: int

    @property
    def has_free_slot(self) -> bool:
        return self.in_flight < self.parallel_capacity

    @property
    def compute_free(self) -> int:
        return self.compute_capacity - self.compute_used

    def as_dict(self) -> dict:
        return {
            "parallel_capacity": self.parallel_capacity,
            "in_flight": self.in_flight,
            "queue_capacity": self.queue_capacity,
            "queued": self.queued,
            "compute_capacity": self.compute_capacity,
            "compute_used": self.compute_used,
            "staff_capacity": self.staff_capacity,
            "staff_used": self.staff_used,
        }


@dataclass(frozen=True)
class AdmissionDecision:
    immediate: bool
    # 1-based backlog position when queued
    position: Optional[int] = None


def capacity_snapshot(
    catalog: ContentCatalog,
    *,
    founder_type: Optional[str],
    progression: OwnerProgression,
    pool: ResourcePool,
    bonuses: OwnerBonuses,
    in_progress: Iterable[Job],
    queued_count: int,
    queued_hires: int = 0,
) -> CapacitySnapshot:
    """Derive every capacity figure from owner state. Queued hires already hold a staff seat."""
    in_progress = list(in_progress)
    founder = catalog.founders.get(FounderType(founder_type)) if founder_type else None
    active_hires = sum(1 for job in in_progress if job.kind == JobKind.HIRE.value)

    return CapacitySnapshot(
        parallel_capacity=(
            catalog.upgrade_value(UpgradeType.QUEUE, progression.queue_rank)
            + pool.staff_count
            + bonuses.hire_queue
        ),
        in_flight=len(in_progress),
        queue_capacity=catalog.queue_capacity(progression.queue_rank),
        queued=queued_count,
        compute_capacity=catalog.upgrade_value(UpgradeType.COMPUTE, progression.compute_rank),
        compute_used=sum(job.compute_cost for job in in_progress),
        staff_capacity=(
            catalog.upgrade_value(UpgradeType.STAFF, progression.staff_rank)
            + (founder.staff_bonus if founder else 0)
        ),
        staff_used=pool.staff_count + active_hires + queued_hires,
    )


def decide(snapshot: CapacitySnapshot) -> AdmissionDecision:
    """
    Capacity rule on its own.

    Immediate when a parallel slot is free and nothing is queued; otherwise
    queued behind older jobs if the backlog is unlocked and has room.
    """
    if snapshot.has_free_slot and snapshot.queued == 0:
        return AdmissionDecision(immediate=True)
    if snapshot.queue_capacity <= 0:
        raise AdmissionDenied(
            "queue_not_unlocked",
            "All slots are busy and the queue is not unlocked",
            details={"parallel_capacity": snapshot.parallel_capacity, "in_flight": snapshot.in_flight},
        )
    if snapshot.queued >= snapshot.queue_capacity:
        raise AdmissionDenied(
            "queue_full",
            f"Queue full ({snapshot.queued}/{snapshot.queue_capacity})",
            details={"queue_capacity": snapshot.queue_capacity, "queued": snapshot.queued},
        )
    return AdmissionDecision(immediate=False, position=snapshot.queued + 1)


def resource_shortfalls(
    job: JobDefinition,
    effective_cost: int,
    pool: ResourcePool,
    snapshot: CapacitySnapshot,
) -> List[Shortfall]:
    shortfalls = []
    if job.cost_resource == CostResource.RESEARCH_POINTS:
        if pool.research_points < effective_cost:
            shortfalls.append(Shortfall("research_points", effective_cost, pool.research_points))
    elif pool.cash < effective_cost:
        shortfalls.append(Shortfall("cash", effective_cost, pool.cash))

    # Backlog jobs included
    if job.compute_cost > snapshot.compute_free:
        shortfalls.append(Shortfall("compute", job.compute_cost, max(0, snapshot.compute_free)))
    return shortfalls


def admit(
    job: JobDefinition,
    *,
    effective_cost: int,
    pool: ResourcePool,
    snapshot: CapacitySnapshot,
    effective_now_ms: int,
    cooldown_until_ms: Optional[int] = None,
    has_pending_duplicate: bool = False,
) -> AdmissionDecision:
    """
    Run every admission gate for one request.

    Raises InsufficientResource or AdmissionDenied; otherwise returns whether
    the job starts now or joins the backlog.
    """
    shortfalls = resource_shortfalls(job, effective_cost, pool, snapshot)
    if shortfalls:
        raise InsufficientResource(shortfalls)

    if job.kind == JobKind.HIRE and snapshot.staff_used >= snapshot.staff_capacity:
        raise AdmissionDenied(
            "staff_capacity_full",
            f"Staff capacity full ({snapshot.staff_used}/{snapshot.staff_capacity})",
            details={"staff_capacity": snapshot.staff_capacity, "staff_used": snapshot.staff_used},
        )

    if job.cooldown_ms:
        if has_pending_duplicate:
            raise AdmissionDenied(
                "cooldown_active",
                f"{job.name} is already running or queued",
                details={"job_id": job.id},
            )
        if cooldown_until_ms is not None and effective_now_ms < cooldown_until_ms:
            remaining = cooldown_until_ms - effective_now_ms
            raise AdmissionDenied(
                "cooldown_active",
                f"{job.name} is on cooldown for {remaining // 1000}s",
                details={"job_id": job.id, "available_at_ms": cooldown_until_ms, "remaining_ms": remaining},
            )

    decision = decide(snapshot)
    logger.debug(
        f"Admission for {job.id}: immediate={decision.immediate} position={decision.position} "
        f"capacity={snapshot.as_dict()}"
    )
    return decision
