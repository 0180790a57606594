"""
Static content catalog.

Read-only definitions for job kinds, research nodes, blueprints, upgrades and
level thresholds. The catalog is validated once at process start and injected
into every service; nothing mutates it at runtime.
"""

import json
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, model_validator


class JobKind(str, Enum):
    TRAINING = "training"
    CONTRACT = "contract"
    HIRE = "hire"
    RESEARCH = "research"


class ModelType(str, Enum):
    LLM = "llm"
    TTS = "tts"
    VLM = "vlm"


class HireStat(str, Enum):
    SPEED = "speed"
    MONEY_MULTIPLIER = "money_multiplier"
    QUEUE = "queue"


class PerkType(str, Enum):
    SPEED = "speed"
    MONEY_MULTIPLIER = "money_multiplier"


class UpgradeType(str, Enum):
    QUEUE = "queue"
    STAFF = "staff"
    COMPUTE = "compute"
    SPEED = "speed"
    MONEY_MULTIPLIER = "money_multiplier"


class FounderType(str, Enum):
    TECHNICAL = "technical"
    BUSINESS = "business"


class CostResource(str, Enum):
    CASH = "cash"
    RESEARCH_POINTS = "research_points"


class NodeCategory(str, Enum):
    BLUEPRINT = "blueprint"
    CAPABILITY = "capability"
    PERK = "perk"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------


class JobRewards(_Frozen):
    money: int = 0
    research_points: int = 0
    experience: int = 0


class TrainingEffect(_Frozen):
    kind: Literal["training"] = "training"
    blueprint_id: str


class ContractEffect(_Frozen):
    kind: Literal["contract"] = "contract"
    required_model_type: Optional[ModelType] = None


class HireEffect(_Frozen):
    kind: Literal["hire"] = "hire"
    stat: HireStat
    bonus: int


class ResearchEffect(_Frozen):
    kind: Literal["research"] = "research"
    node_id: str


JobEffect = Annotated[
    Union[TrainingEffect, ContractEffect, HireEffect, ResearchEffect],
    Field(discriminator="kind"),
]


class JobDefinition(_Frozen):
    id: str
    name: str
    description: str = ""
    duration_ms: int = Field(..., gt=0)
    base_cost: int = Field(0, ge=0)
    cost_resource: CostResource = CostResource.CASH
    compute_cost: int = Field(0, ge=0)
    rewards: JobRewards = JobRewards()
    min_level: int = 1
    cooldown_ms: int = 0
    # Jobs that need a research unlock before they can be started
    requires_unlock: bool = False
    effect: JobEffect

    @property
    def kind(self) -> JobKind:
        return JobKind(self.effect.kind)


# ---------------------------------------------------------------------------
# Research graph
# ---------------------------------------------------------------------------


class NodeUnlocks(_Frozen):
    blueprint_ids: List[str] = []
    job_ids: List[str] = []
    system_flags: List[str] = []
    perk_type: Optional[PerkType] = None
    perk_value: float = 0


class ResearchNode(_Frozen):
    id: str
    category: NodeCategory
    name: str
    description: str = ""
    cost_rp: int = Field(0, ge=0)
    min_level: int = 1
    prerequisites: List[str] = []
    duration_ms: int = 2 * 60 * 1000
    reward_xp: int = 0
    unlocks: NodeUnlocks = NodeUnlocks()

    @property
    def is_starter(self) -> bool:
        """Free, root-level nodes are auto-granted to every owner."""
        return self.cost_rp == 0 and not self.prerequisites and self.min_level == 1

    def as_job(self) -> JobDefinition:
        """The research-kind job that purchases this node."""
        return JobDefinition(
            id=self.id,
            name=f"Research: {self.name}",
            description=self.description,
            duration_ms=self.duration_ms,
            base_cost=self.cost_rp,
            cost_resource=CostResource.RESEARCH_POINTS,
            rewards=JobRewards(experience=self.reward_xp),
            min_level=self.min_level,
            effect=ResearchEffect(node_id=self.id),
        )


# ---------------------------------------------------------------------------
# Progression
# ---------------------------------------------------------------------------


class UpgradeDefinition(_Frozen):
    id: UpgradeType
    name: str
    description: str = ""
    base: int
    per_rank: int
    max_rank: int
    unit: str = ""


class RankGate(_Frozen):
    min_rank: int
    max_rank: int
    required_level: int


class FounderModifiers(_Frozen):
    speed_percent: float = 0
    money_percent: float = 0
    staff_bonus: int = 0
    model_score_multiplier: float = 1.0


class ModelBlueprint(_Frozen):
    id: str
    name: str
    model_type: ModelType
    score_min: int
    score_max: int


class DeepLink(_Frozen):
    view: Literal["operate", "research", "lab", "inbox", "world"]
    target: Optional[str] = None


class InboxEvent(_Frozen):
    event_id: str
    trigger: Literal["first_level_up", "first_research", "first_model", "publishing_unlocked", "level_5"]
    title: str
    message: str
    deep_link: Optional[DeepLink] = None


class ContentCatalog(_Frozen):
    """Validated, immutable game content keyed by id."""

    max_level: int = 20
    upgrade_points_per_level: int = 1
    # XP needed to advance from (level - 1) to level
    xp_thresholds: Dict[int, int]
    starting_cash: int = 5000
    starting_research_points: int = 0
    level_speed_percent_per_level: float = 1.0
    queue_backlog_per_rank: int = 1
    upgrades: Dict[UpgradeType, UpgradeDefinition]
    rank_gates: List[RankGate]
    founders: Dict[FounderType, FounderModifiers]
    blueprints: List[ModelBlueprint]
    jobs: List[JobDefinition]
    research_nodes: List[ResearchNode]
    inbox_events: List[InboxEvent] = []

    _jobs_by_id: Dict[str, JobDefinition] = PrivateAttr(default_factory=dict)
    _nodes_by_id: Dict[str, ResearchNode] = PrivateAttr(default_factory=dict)
    _blueprints_by_id: Dict[str, ModelBlueprint] = PrivateAttr(default_factory=dict)

    @model_validator(mode="after")
    def _index_and_validate(self) -> "ContentCatalog":
        self._jobs_by_id = _unique_index(self.jobs, "job")
        self._nodes_by_id = _unique_index(self.research_nodes, "research node")
        self._blueprints_by_id = _unique_index(self.blueprints, "blueprint")

        overlap = set(self._jobs_by_id) & set(self._nodes_by_id)
        if overlap:
            raise ValueError(f"job ids collide with research node ids: {sorted(overlap)}")

        for upgrade_type in UpgradeType:
            if upgrade_type not in self.upgrades:
                raise ValueError(f"missing upgrade definition: {upgrade_type.value}")

        for level in range(2, self.max_level + 1):
            if level not in self.xp_thresholds:
                raise ValueError(f"missing xp threshold for level {level}")

        for job in self.jobs:
            if isinstance(job.effect, TrainingEffect) and job.effect.blueprint_id not in self._blueprints_by_id:
                raise ValueError(f"job {job.id} trains unknown blueprint {job.effect.blueprint_id}")
            if isinstance(job.effect, ResearchEffect):
                raise ValueError(f"job {job.id}: research jobs are derived from research nodes")

        for node in self.research_nodes:
            for prereq in node.prerequisites:
                if prereq not in self._nodes_by_id:
                    raise ValueError(f"node {node.id} requires unknown node {prereq}")
            for job_id in node.unlocks.job_ids:
                if job_id not in self._jobs_by_id:
                    raise ValueError(f"node {node.id} unlocks unknown job {job_id}")
            for blueprint_id in node.unlocks.blueprint_ids:
                if blueprint_id not in self._blueprints_by_id:
                    raise ValueError(f"node {node.id} unlocks unknown blueprint {blueprint_id}")

        self._check_acyclic()
        return self

    def _check_acyclic(self) -> None:
        visiting, done = set(), set()

        def visit(node_id: str, path: List[str]) -> None:
            if node_id in done:
                return
            if node_id in visiting:
                cycle = " -> ".join(path + [node_id])
                raise ValueError(f"research prerequisites form a cycle: {cycle}")
            visiting.add(node_id)
            for prereq in self._nodes_by_id[node_id].prerequisites:
                visit(prereq, path + [node_id])
            visiting.discard(node_id)
            done.add(node_id)

        for node_id in self._nodes_by_id:
            visit(node_id, [])

    # -- lookups -------------------------------------------------------------

    def get_job(self, job_id: str) -> Optional[JobDefinition]:
        """Job definition by id; research node ids resolve to their research job."""
        job = self._jobs_by_id.get(job_id)
        if job is not None:
            return job
        node = self._nodes_by_id.get(job_id)
        return node.as_job() if node is not None else None

    def get_node(self, node_id: str) -> Optional[ResearchNode]:
        return self._nodes_by_id.get(node_id)

    def get_blueprint(self, blueprint_id: str) -> Optional[ModelBlueprint]:
        return self._blueprints_by_id.get(blueprint_id)

    def starter_nodes(self) -> List[ResearchNode]:
        return [node for node in self.research_nodes if node.is_starter]

    def inbox_event(self, trigger: str) -> Optional[InboxEvent]:
        return next((event for event in self.inbox_events if event.trigger == trigger), None)

    # -- progression helpers -------------------------------------------------

    def upgrade_value(self, upgrade_type: UpgradeType, rank: int) -> int:
        upgrade = self.upgrades[upgrade_type]
        return upgrade.base + upgrade.per_rank * rank

    def queue_capacity(self, queue_rank: int) -> int:
        return self.queue_backlog_per_rank * queue_rank

    def required_level_for_rank(self, rank: int) -> int:
        for gate in self.rank_gates:
            if gate.min_rank <= rank <= gate.max_rank:
                return gate.required_level
        return self.max_level

    def is_rank_unlocked(self, rank: int, level: int) -> bool:
        return level >= self.required_level_for_rank(rank)

    def xp_for_next_level(self, level: int) -> Optional[int]:
        """XP needed to leave ``level``; None at max level."""
        if level >= self.max_level:
            return None
        return self.xp_thresholds[level + 1]


def _unique_index(items, label: str) -> dict:
    index = {}
    for item in items:
        if item.id in index:
            raise ValueError(f"duplicate {label} id: {item.id}")
        index[item.id] = item
    return index


def load_catalog(path: Optional[str] = None) -> ContentCatalog:
    """Load and validate the catalog from a JSON file, or the built-in content."""
    if path:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    else:
        from labsim.core.default_content import DEFAULT_CONTENT

        data = DEFAULT_CONTENT
    return ContentCatalog.model_validate(data)


@lru_cache(maxsize=1)
def get_catalog() -> ContentCatalog:
    """Process-wide catalog, loaded once from settings."""
    from labsim.core.config import settings

    return load_catalog(settings.CATALOG_PATH)
