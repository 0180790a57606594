import uuid

import pytest

from labsim.errors import NotFound
from labsim.models.artifact import ScoredArtifact, Visibility
from labsim.repositories.artifact_repository import ArtifactRepository
from labsim.services.leaderboard_service import (
    LeaderboardService,
    aggregate,
    best_per_owner,
    best_public_scores,
    dense_ranks,
    lab_score,
    neighbor_slice,
)

BASE_MS = 1_700_000_000_000


def _artifact(owner_id="owner-1", blueprint_id="bp_tts_3b", version=1, score=50, visibility=Visibility.PUBLIC,
              model_type="tts", trained_at_ms=None):
    return ScoredArtifact(
        id=uuid.uuid4(),
        owner_id=owner_id,
        job_id=uuid.uuid4(),
        blueprint_id=blueprint_id,
        model_type=model_type,
        name=f"{blueprint_id} v{version}",
        version=version,
        score=score,
        trained_at_ms=trained_at_ms if trained_at_ms is not None else BASE_MS + version,
        visibility=visibility,
    )


@pytest.mark.unit
def test_aggregate_picks_best_and_latest_versions():
    artifacts = [_artifact(version=v, score=s) for v, s in ((1, 50), (2, 80), (3, 65))]

    (item,) = aggregate(artifacts)

    assert item.best.score == 80
    assert item.best.version == 2
    assert item.latest.score == 65
    assert item.version_count == 3
    assert item.public_count == 3


@pytest.mark.unit
def test_best_version_tie_goes_to_earliest():
    artifacts = [_artifact(version=1, score=70), _artifact(version=2, score=70)]

    (item,) = aggregate(artifacts)

    assert item.best.version == 1


@pytest.mark.unit
def test_aggregates_sorted_by_latest_training():
    artifacts = [
        _artifact(blueprint_id="bp_tts_3b", version=1, trained_at_ms=BASE_MS),
        _artifact(blueprint_id="bp_vlm_7b", model_type="vlm", version=1, trained_at_ms=BASE_MS + 10),
    ]

    assert [item.blueprint_id for item in aggregate(artifacts)] == ["bp_vlm_7b", "bp_tts_3b"]


@pytest.mark.unit
def test_dense_ranks_share_ties():
    assert dense_ranks([90, 80, 80, 70]) == [1, 2, 2, 3]
    assert dense_ranks([]) == []


@pytest.mark.unit
def test_best_per_owner_ignores_private_models():
    artifacts = [
        _artifact(owner_id="a", score=60),
        _artifact(owner_id="a", version=2, score=95, visibility=Visibility.PRIVATE),
        _artifact(owner_id="b", score=75),
        _artifact(owner_id="c", score=99, visibility=Visibility.PRIVATE),
    ]

    best = best_per_owner(artifacts)

    assert [(artifact.owner_id, artifact.score) for artifact in best] == [("b", 75), ("a", 60)]


@pytest.mark.unit
def test_lab_score_combines_level_models_and_capacity_ranks():
    scores = best_public_scores(
        [
            _artifact(score=60),
            _artifact(version=2, score=40),
            _artifact(blueprint_id="bp_llm_3b", model_type="llm", score=50),
            _artifact(blueprint_id="bp_vlm_7b", model_type="vlm", score=90, visibility=Visibility.PRIVATE),
        ]
    )

    assert scores == {"tts": 60, "llm": 50}
    # 3 * 100 + 60 + 50 + (1 + 1 + 0) * 20
    assert lab_score(3, scores, queue_rank=1, staff_rank=1, compute_rank=0) == 450


@pytest.mark.unit
def test_neighbor_slice_windows():
    rows = list(range(100))

    assert neighbor_slice(rows, 50) == list(range(30, 71))
    assert neighbor_slice(rows, 5) == list(range(0, 26))
    assert neighbor_slice(rows, None) == list(range(41))


@pytest.mark.asyncio
@pytest.mark.db
async def test_model_leaderboard_ranks_public_models(db, catalog, make_lab):
    for owner_id in ("alice", "bob", "carol"):
        await make_lab(owner_id=owner_id)
    artifacts = ArtifactRepository(db)
    await artifacts.add(_artifact(owner_id="alice", score=80))
    await artifacts.add(_artifact(owner_id="bob", score=80))
    await artifacts.add(_artifact(owner_id="carol", score=60))
    await artifacts.add(_artifact(owner_id="carol", version=2, score=99, visibility=Visibility.PRIVATE))
    service = LeaderboardService(db, catalog)

    board = await service.model_leaderboard("bp_tts_3b", viewer_id="carol")

    assert [(row.owner_id, row.rank, row.score) for row in board.rows] == [
        ("alice", 1, 80),
        ("bob", 1, 80),
        ("carol", 2, 60),
    ]
    assert board.my_rank == 2
    assert board.has_public_model
    assert board.rows[2].is_current_player
    assert board.rows[0].lab_name == "Lab alice"

    empty = await service.model_leaderboard("bp_vlm_7b", viewer_id="carol")
    assert empty.rows == []
    assert not empty.has_public_model

    with pytest.raises(NotFound):
        await service.model_leaderboard("bp_unknown")


@pytest.mark.asyncio
@pytest.mark.db
async def test_visibility_controls_what_others_see(db, catalog, make_lab):
    await make_lab(owner_id="alice")
    artifacts = ArtifactRepository(db)
    first = await artifacts.add(_artifact(owner_id="alice", score=55))
    await artifacts.add(_artifact(owner_id="alice", version=2, score=65))
    service = LeaderboardService(db, catalog)

    await service.set_visibility("alice", first.id, Visibility.PRIVATE)

    (own,) = await service.owner_models("alice", viewer_id="alice")
    assert own.version_count == 2
    assert own.public_count == 1
    (public,) = await service.owner_models("alice", viewer_id="bob")
    assert public.version_count == 1
    assert public.best_version.score == 65

    with pytest.raises(NotFound):
        await service.set_visibility("bob", first.id, Visibility.PUBLIC)
    with pytest.raises(ValueError):
        await service.set_visibility("alice", first.id, "friends")


@pytest.mark.asyncio
@pytest.mark.db
async def test_lab_leaderboard_orders_by_lab_score(db, catalog, make_lab):
    await make_lab(owner_id="alice", level=2)
    await make_lab(owner_id="bob", level=1, queue_rank=1)
    await make_lab(owner_id="carol", level=1)
    await ArtifactRepository(db).add(_artifact(owner_id="carol", score=70))
    service = LeaderboardService(db, catalog)

    board = await service.lab_leaderboard(viewer_id="bob")

    assert [(row.owner_id, row.rank, row.lab_score) for row in board.rows] == [
        ("alice", 1, 200),
        ("carol", 2, 170),
        ("bob", 3, 120),
    ]
    assert board.my_rank == 3
    assert board.rows[1].best_public_scores == {"tts": 70}
