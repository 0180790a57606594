"""
Job lifecycle - start, complete and promote.

Every job moves queued -> in_progress -> completed and nothing else. All
steps run inside the caller's transaction with the owner's resource pool
row locked; the service only flushes, the session owner commits or rolls
back.
"""

import logging
import random
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from labsim.core.catalog import (
    ContentCatalog,
    ContractEffect,
    CostResource,
    FounderType,
    JobDefinition,
    JobKind,
    TrainingEffect,
)
from labsim.errors import AlreadyCompleted, AlreadyInProgress, NotFound, PrerequisiteUnmet
from labsim.models.artifact import ScoredArtifact, Visibility
from labsim.models.job import Job, JobStatus
from labsim.models.lab import ResourcePool
from labsim.models.notification import NotificationKind
from labsim.repositories.artifact_repository import ArtifactRepository
from labsim.repositories.job_repository import JobRepository
from labsim.repositories.research_repository import ResearchRepository
from labsim.schemas.job import CompletionResult, JobRewardsRead, StartJobResult
from labsim.services.admission_service import admit
from labsim.services.bonus_composer import OwnerBonuses, effective_cost, effective_duration, effective_reward
from labsim.services.callback_scheduler import CallbackScheduler
from labsim.services.notification_service import NotificationService
from labsim.services.owner_context import OwnerContext, load_owner_context
from labsim.services.progression import apply_experience
from labsim.services.time_authority import TimeAuthority
from labsim.services.unlock_graph import UnlockGraphService, is_available, is_purchased

logger = logging.getLogger(__name__)


class CompletionOutcome:
    COMPLETED = "completed"
    ALREADY_COMPLETED = "already_completed"
    DEFERRED = "deferred"
    MISSING = "missing"
    NOT_STARTED = "not_started"


class JobLifecycleService:
    def __init__(
        self,
        db: AsyncSession,
        catalog: ContentCatalog,
        time_authority: Optional[TimeAuthority] = None,
        rng: Optional[random.Random] = None,
    ):
        self.db = db
        self.catalog = catalog
        self.time = time_authority or TimeAuthority(db)
        self.rng = rng or random.Random()
        self.jobs = JobRepository(db)
        self.research = ResearchRepository(db)
        self.artifacts = ArtifactRepository(db)
        self.scheduler = CallbackScheduler(db)
        self.notifications = NotificationService(db, catalog)
        self.unlock_graph = UnlockGraphService(db, catalog)

    # ------------------------------------------------------------------
    # Start
    # ------------------------------------------------------------------

    async def start_job(self, owner_id: str, content_id: str) -> StartJobResult:
        """
        Request a job by catalog id.

        Research node ids are accepted too and start that node's research
        job. Raises NotFound, PrerequisiteUnmet, AlreadyCompleted,
        AlreadyInProgress, InsufficientResource or AdmissionDenied.
        """
        job_def = self.catalog.get_job(content_id)
        if job_def is None:
            raise NotFound(f"Unknown job: {content_id}")

        ctx = await load_owner_context(self.db, owner_id)
        bonuses = ctx.bonuses(self.catalog)
        await self._check_requirements(job_def, ctx, bonuses)

        now_eff = await self.time.effective_now(owner_id)
        cost = effective_cost(job_def.base_cost, bonuses)
        cooldown = await self.jobs.get_cooldown(owner_id, job_def.id) if job_def.cooldown_ms else None
        decision = admit(
            job_def,
            effective_cost=cost,
            pool=ctx.pool,
            snapshot=ctx.capacity(self.catalog, bonuses),
            effective_now_ms=now_eff,
            cooldown_until_ms=cooldown.available_at_ms if cooldown is not None else None,
            has_pending_duplicate=ctx.has_active(job_def.id),
        )

        _debit(ctx.pool, job_def.cost_resource, cost)

        job = Job(
            owner_id=owner_id,
            content_id=job_def.id,
            kind=job_def.kind.value,
            status=JobStatus.QUEUED,
            sequence=await self.jobs.next_sequence(owner_id),
            base_duration_ms=job_def.duration_ms,
            base_cost=job_def.base_cost,
            cost_resource=job_def.cost_resource.value,
            charged_cost=cost,
            compute_cost=job_def.compute_cost,
            base_reward_money=job_def.rewards.money,
            base_reward_rp=job_def.rewards.research_points,
            base_reward_xp=job_def.rewards.experience,
            created_at_ms=self.time.real_now(),
        )
        await self.jobs.add(job)

        if decision.immediate:
            await self._activate(job, job_def, bonuses, now_eff)
            ctx.in_progress.append(job)
            logger.info(
                f"Owner {owner_id} started {job_def.id} (job {job.id}), "
                f"cost {cost} {job_def.cost_resource.value}, completes at {job.completes_at_ms}"
            )
        else:
            ctx.queued.append(job)
            logger.info(f"Owner {owner_id} queued {job_def.id} (job {job.id}) at position {decision.position}")

        return StartJobResult(
            job_id=job.id,
            content_id=job.content_id,
            status=job.status,
            position=decision.position,
            effective_cost=cost,
            cost_resource=job.cost_resource,
            started_at_ms=job.started_at_ms,
            completes_at_ms=job.completes_at_ms,
        )

    async def purchase_research(self, owner_id: str, node_id: str) -> StartJobResult:
        if self.catalog.get_node(node_id) is None:
            raise NotFound(f"Unknown research node: {node_id}")
        return await self.start_job(owner_id, node_id)

    async def _check_requirements(self, job_def: JobDefinition, ctx: OwnerContext, bonuses: OwnerBonuses) -> None:
        if job_def.kind == JobKind.RESEARCH:
            await self._check_research(job_def.id, ctx, bonuses)
            return

        if ctx.progression.level < job_def.min_level:
            raise PrerequisiteUnmet(
                f"{job_def.name} requires level {job_def.min_level}",
                "level",
                details={"required_level": job_def.min_level, "level": ctx.progression.level},
            )
        if job_def.requires_unlock and job_def.id not in ctx.unlocks.job_ids:
            raise PrerequisiteUnmet(f"{job_def.name} must be unlocked via research first", "unlock")

        effect = job_def.effect
        if isinstance(effect, TrainingEffect) and effect.blueprint_id not in ctx.unlocks.blueprint_ids:
            raise PrerequisiteUnmet(f"Blueprint {effect.blueprint_id} is not unlocked", "unlock")
        if isinstance(effect, ContractEffect) and effect.required_model_type is not None:
            model_type = effect.required_model_type.value
            if not await self.artifacts.has_model_type(ctx.owner_id, model_type):
                raise PrerequisiteUnmet(
                    f"{job_def.name} requires a trained {model_type.upper()} model",
                    "model",
                    details={"model_type": model_type},
                )

    async def _check_research(self, node_id: str, ctx: OwnerContext, bonuses: OwnerBonuses) -> None:
        node = self.catalog.get_node(node_id)
        purchased = await self.research.purchased_node_ids(ctx.owner_id)
        if is_purchased(node, purchased):
            raise AlreadyCompleted(f"{node.name} is already researched", details={"node_id": node.id})
        if ctx.has_active(node.id):
            raise AlreadyInProgress(f"{node.name} is already being researched", details={"node_id": node.id})

        availability = is_available(
            node,
            catalog=self.catalog,
            level=ctx.progression.level,
            purchased_ids=purchased,
            research_points=ctx.pool.research_points,
            bonuses=bonuses,
        )
        # Affordability is reported by admission along with any other shortfall
        if not availability.available and availability.requirement != "affordability":
            raise PrerequisiteUnmet(
                availability.reason,
                availability.requirement,
                details={"node_id": node.id, "missing_prerequisites": list(availability.missing_prerequisites)},
            )

    async def _activate(self, job: Job, job_def: Optional[JobDefinition], bonuses: OwnerBonuses, now_eff: int) -> None:
        """Move a job to in_progress and schedule its completion callback."""
        duration = effective_duration(job.base_duration_ms, JobKind(job.kind), bonuses)
        job.status = JobStatus.IN_PROGRESS
        job.started_at_ms = now_eff
        job.completes_at_ms = now_eff + duration

        fire_at = await self.time.real_time_for(job.owner_id, job.completes_at_ms)
        await self.scheduler.register_at(job.owner_id, job.id, fire_at, job.completes_at_ms)

        if job_def is not None and job_def.cooldown_ms:
            await self.jobs.set_cooldown(job.owner_id, job.content_id, job.completes_at_ms + job_def.cooldown_ms)
        await self.db.flush()

    # ------------------------------------------------------------------
    # Complete
    # ------------------------------------------------------------------

    async def complete_job(self, job_id: UUID) -> CompletionResult:
        """
        Finish an in-progress job. Safe to call any number of times.

        A job whose effective deadline has not been reached yet (the owner
        slowed their clock down after the callback was scheduled) is not
        completed; its callback is pushed back instead.
        """
        job = await self.jobs.get(job_id)
        if job is None:
            logger.warning(f"Completion requested for unknown job {job_id}")
            return CompletionResult(job_id=job_id, outcome=CompletionOutcome.MISSING)
        if job.status == JobStatus.COMPLETED:
            return CompletionResult(job_id=job_id, outcome=CompletionOutcome.ALREADY_COMPLETED)

        owner_id = job.owner_id
        ctx = await load_owner_context(self.db, owner_id)
        job = await self.jobs.get(job_id, lock=True)
        if job.status == JobStatus.COMPLETED:
            return CompletionResult(job_id=job_id, outcome=CompletionOutcome.ALREADY_COMPLETED)
        if job.status != JobStatus.IN_PROGRESS:
            logger.warning(f"Completion requested for job {job_id} in status {job.status}")
            return CompletionResult(job_id=job_id, outcome=CompletionOutcome.NOT_STARTED)

        now_eff = await self.time.effective_now(owner_id)
        if now_eff < job.completes_at_ms:
            fire_at = await self.time.real_time_for(owner_id, job.completes_at_ms)
            await self.scheduler.defer(job.id, fire_at)
            return CompletionResult(job_id=job_id, outcome=CompletionOutcome.DEFERRED)

        kind = JobKind(job.kind)
        bonuses = ctx.bonuses(self.catalog, exclude_job_id=job.id)
        rewards = JobRewardsRead(
            cash=effective_reward(job.base_reward_money, bonuses),
            research_points=job.base_reward_rp,
            experience=job.base_reward_xp,
        )
        ctx.pool.cash += rewards.cash
        ctx.pool.research_points += rewards.research_points

        artifact = None
        if kind == JobKind.RESEARCH:
            await self._complete_research(job, now_eff)
        elif kind == JobKind.TRAINING:
            artifact = await self._create_artifact(job, ctx, now_eff)
        elif kind == JobKind.HIRE:
            ctx.pool.staff_count += 1
        elif kind != JobKind.CONTRACT:
            raise ValueError(f"Unhandled job kind: {kind}")

        if rewards.research_points > 0:
            await self.notifications.emit_milestone(owner_id, "first_research", now_eff)

        outcome = await self._grant_experience(ctx, rewards.experience, now_eff)

        job.status = JobStatus.COMPLETED
        job.completed_at_ms = now_eff
        job.rewards = rewards.model_dump()
        job.artifact_id = artifact.id if artifact is not None else None
        ctx.in_progress = [active for active in ctx.in_progress if active.id != job.id]

        await self._notify_completion(job, rewards, artifact, now_eff)
        await self.db.flush()
        logger.info(f"Owner {owner_id} completed {job.content_id} (job {job.id}) rewards={rewards.model_dump()}")

        promoted = await self.promote_queued(ctx, now_eff)
        return CompletionResult(
            job_id=job.id,
            outcome=CompletionOutcome.COMPLETED,
            rewards=rewards,
            levels_gained=outcome.levels_gained,
            new_level=ctx.progression.level,
            artifact_id=artifact.id if artifact is not None else None,
            promoted_job_id=promoted[0].id if promoted else None,
        )

    async def _complete_research(self, job: Job, now_eff: int) -> None:
        node = self.catalog.get_node(job.content_id)
        if node is None:
            logger.warning(f"Research job {job.id} references unknown node {job.content_id}")
            return
        await self.unlock_graph.apply_node(job.owner_id, node, now_eff, job_id=job.id)
        if "publishing" in node.unlocks.system_flags:
            await self.notifications.emit_milestone(job.owner_id, "publishing_unlocked", now_eff)

    async def _create_artifact(self, job: Job, ctx: OwnerContext, now_eff: int) -> Optional[ScoredArtifact]:
        job_def = self.catalog.get_job(job.content_id)
        if job_def is None or not isinstance(job_def.effect, TrainingEffect):
            logger.warning(f"Training job {job.id} has no blueprint in the catalog")
            return None
        blueprint = self.catalog.get_blueprint(job_def.effect.blueprint_id)

        version = await self.artifacts.max_version(job.owner_id, blueprint.id) + 1
        artifact = ScoredArtifact(
            owner_id=job.owner_id,
            job_id=job.id,
            blueprint_id=blueprint.id,
            model_type=blueprint.model_type.value,
            name=f"{blueprint.name} v{version}",
            version=version,
            score=self._roll_score(blueprint.score_min, blueprint.score_max, ctx),
            trained_at_ms=now_eff,
            visibility=Visibility.PUBLIC,
        )
        await self.artifacts.add(artifact)
        await self.notifications.emit_milestone(job.owner_id, "first_model", now_eff)
        return artifact

    def _roll_score(self, score_min: int, score_max: int, ctx: OwnerContext) -> int:
        founder = self.catalog.founders.get(FounderType(ctx.lab.founder_type))
        multiplier = founder.model_score_multiplier if founder is not None else 1.0
        multiplier *= 1 + (ctx.pool.speed_bonus or 0) / 100
        return round(self.rng.randint(score_min, score_max) * multiplier)

    async def _grant_experience(self, ctx: OwnerContext, experience: int, now_eff: int):
        progression = ctx.progression
        previous_level = progression.level
        outcome = apply_experience(self.catalog, progression.level, progression.experience, experience)
        progression.level = outcome.level
        progression.experience = outcome.experience
        progression.upgrade_points += outcome.upgrade_points_gained

        if outcome.levels_gained:
            await self.notifications.notify(
                ctx.owner_id,
                NotificationKind.LEVEL_UP,
                f"Level {outcome.level}!",
                f"You reached level {outcome.level} and earned {outcome.upgrade_points_gained} upgrade point(s).",
                now_eff,
                deep_link={"view": "lab", "target": "upgrades"},
            )
            await self.notifications.emit_milestone(ctx.owner_id, "first_level_up", now_eff)
            if previous_level < 5 <= outcome.level:
                await self.notifications.emit_milestone(ctx.owner_id, "level_5", now_eff)
            logger.info(f"Owner {ctx.owner_id} leveled up {previous_level} -> {outcome.level}")
        return outcome

    async def _notify_completion(
        self,
        job: Job,
        rewards: JobRewardsRead,
        artifact: Optional[ScoredArtifact],
        now_eff: int,
    ) -> None:
        job_def = self.catalog.get_job(job.content_id)
        name = job_def.name if job_def is not None else job.content_id
        parts = []
        if rewards.cash:
            parts.append(f"+${rewards.cash}")
        if rewards.research_points:
            parts.append(f"+{rewards.research_points} RP")
        if rewards.experience:
            parts.append(f"+{rewards.experience} XP")
        if artifact is not None:
            parts.append(f"{artifact.name} scored {artifact.score}")

        kind = {
            JobKind.HIRE.value: NotificationKind.HIRE_COMPLETE,
            JobKind.RESEARCH.value: NotificationKind.RESEARCH_COMPLETE,
        }.get(job.kind, NotificationKind.TASK_COMPLETE)
        await self.notifications.notify(
            job.owner_id,
            kind,
            f"{name} complete",
            ", ".join(parts) or "Done.",
            now_eff,
            job_id=job.id,
        )

    # ------------------------------------------------------------------
    # Promote
    # ------------------------------------------------------------------

    async def promote_next(self, ctx: OwnerContext, now_eff: int) -> Optional[Job]:
        """Start the owner's oldest queued job if a slot and enough compute are free."""
        head = await self.jobs.oldest_queued(ctx.owner_id)
        if head is None:
            return None

        bonuses = ctx.bonuses(self.catalog)
        snapshot = ctx.capacity(self.catalog, bonuses)
        if not snapshot.has_free_slot:
            return None
        if head.compute_cost > snapshot.compute_free:
            logger.info(
                f"Queued job {head.id} waits for compute ({head.compute_cost} needed, {snapshot.compute_free} free)"
            )
            return None

        await self._activate(head, self.catalog.get_job(head.content_id), bonuses, now_eff)
        ctx.queued = [queued for queued in ctx.queued if queued.id != head.id]
        ctx.in_progress.append(head)
        logger.info(f"Promoted queued job {head.id} ({head.content_id}) for owner {ctx.owner_id}")
        return head

    async def promote_queued(self, ctx: OwnerContext, now_eff: int) -> List[Job]:
        """Promote queued jobs in FIFO order until the head no longer fits."""
        promoted = []
        while True:
            job = await self.promote_next(ctx, now_eff)
            if job is None:
                return promoted
            promoted.append(job)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def list_active(self, owner_id: str) -> List[Job]:
        return await self.jobs.list_active(owner_id)

    async def list_history(self, owner_id: str, limit: int = 50) -> List[Job]:
        return await self.jobs.list_history(owner_id, limit=limit)

    async def get_job(self, owner_id: str, job_id: UUID) -> Job:
        job = await self.jobs.get(job_id)
        if job is None or job.owner_id != owner_id:
            raise NotFound(f"Job {job_id} not found")
        return job


def _debit(pool: ResourcePool, resource: CostResource, amount: int) -> None:
    if amount <= 0:
        return
    if resource == CostResource.RESEARCH_POINTS:
        pool.research_points -= amount
    else:
        pool.cash -= amount
