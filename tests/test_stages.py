import asyncio
from dataclasses import replace

import pytest

from conftest import MemoryStore
from scorekeeper.errors import DuplicateStageIdError, ErrorKind, InvalidStagesError, StageCatalogError
from scorekeeper.stages import SanitizedStage, StageCatalog, derive_views
from scorekeeper.artifacts.schemas import StageDefinition

PRACTICE = {"id": "practice", "name": "Practice rounds", "rounds": 2}
UNUSED = {"id": "unused", "name": "Foobar", "rounds": 0}
PRACTICE_SANITIZED = SanitizedStage(0, "practice", "Practice rounds", 2, (1, 2))
UNUSED_SANITIZED = SanitizedStage(1, "unused", "Foobar", 0, ())


@pytest.fixture
def store():
    return MemoryStore({"stages.json": [PRACTICE]})


@pytest.fixture
def catalog(store):
    return asyncio.run(StageCatalog.create(store))


def test_create_loads_stages(catalog):
    assert catalog.stages == (PRACTICE_SANITIZED,)
    assert catalog.all_stages == (PRACTICE_SANITIZED,)


def test_load_failure_uses_defaults(store, log_messages):
    store.fail_read = "squeek"
    catalog = asyncio.run(StageCatalog.create(store))

    assert "stages read error: squeek" in log_messages
    assert "stages using defaults" in log_messages
    assert [(s.index, s.id, s.rounds, s.round_sequence) for s in catalog.all_stages] == [
        (0, "practice", 2, (1, 2)),
        (1, "qualifying", 3, (1, 2, 3)),
        (2, "eighth", 0, ()),
        (3, "quarter", 0, ()),
        (4, "semi", 0, ()),
        (5, "final", 1, (1,)),
    ]
    # Active view skips empty stages and re-indexes.
    assert [(s.index, s.id) for s in catalog.stages] == [
        (0, "practice"),
        (1, "qualifying"),
        (2, "final"),
    ]


def test_load_invalid_payload_is_fatal_and_keeps_state(catalog, store, log_messages):
    before = catalog.snapshot
    store.files["stages.json"] = [{"id": "practice", "rounds": -1}]
    with pytest.raises(InvalidStagesError) as exc:
        asyncio.run(catalog.load())
    assert exc.value.error.kind is ErrorKind.INVALID
    assert "stages using defaults" not in log_messages
    assert catalog.snapshot is before

    # Nothing replaces the stored payload.
    asyncio.run(catalog.save())
    assert store.files["stages.json"] == [PRACTICE]


def test_create_with_invalid_payload_writes_nothing(store):
    store.files["stages.json"] = [{"name": "no id"}]
    with pytest.raises(InvalidStagesError):
        asyncio.run(StageCatalog.create(store))
    assert store.writes == []


def test_free_form_ids_survive_load_and_save(store):
    round_one = {"id": "round 1", "name": "Round 1", "rounds": 2}
    store.files["stages.json"] = [round_one]
    catalog = asyncio.run(StageCatalog.create(store))
    assert [s.id for s in catalog.all_stages] == ["round 1"]
    assert catalog.get("round 1").round_sequence == (1, 2)

    assert asyncio.run(catalog.save()).ok
    assert store.files["stages.json"] == [round_one]


def test_load_duplicate_ids_is_fatal_and_keeps_state(catalog, store):
    before = catalog.snapshot
    store.files["stages.json"] = [PRACTICE, PRACTICE]
    with pytest.raises(DuplicateStageIdError, match="duplicate stage id practice"):
        asyncio.run(catalog.load())
    assert catalog.snapshot is before
    assert catalog.raw_stages() == [PRACTICE]


def test_save_writes_raw_stages(catalog, store):
    result = asyncio.run(catalog.save())
    assert result.ok
    assert store.writes == [("stages.json", [PRACTICE])]


def test_save_failure_is_logged(catalog, store, log_messages):
    store.fail_write = "aargh"
    result = asyncio.run(catalog.save())
    assert not result.ok
    assert result.error.kind is ErrorKind.PERSISTENCE
    assert "stages write error: aargh" in log_messages
    assert catalog.stages == (PRACTICE_SANITIZED,)


def test_remove(catalog):
    catalog.remove("practice")
    assert catalog.stages == ()


def test_remove_unknown_id_is_noop(catalog):
    before = catalog.snapshot
    catalog.remove("foobar")
    assert catalog.snapshot is before
    assert catalog.stages == (PRACTICE_SANITIZED,)


def test_add_sanitizes(catalog):
    catalog.clear()
    result = catalog.add(PRACTICE)
    assert result.ok
    assert result.value == PRACTICE_SANITIZED
    assert catalog.stages == (PRACTICE_SANITIZED,)


def test_add_duplicate_fails_without_changes(catalog):
    before = catalog.snapshot
    result = catalog.add(PRACTICE)
    assert not result.ok
    assert result.error.kind is ErrorKind.DUPLICATE_ID
    assert catalog.snapshot is before
    with pytest.raises(StageCatalogError):
        result.unwrap()


def test_add_keeps_all_and_active_views(catalog):
    catalog.clear()
    catalog.add(PRACTICE)
    catalog.add(UNUSED)
    assert catalog.all_stages == (PRACTICE_SANITIZED, UNUSED_SANITIZED)
    assert catalog.stages == (PRACTICE_SANITIZED,)


def test_add_rejects_empty_id(catalog):
    with pytest.raises(ValueError):
        catalog.add({"id": "", "rounds": 1})


def test_add_accepts_id_with_spaces(catalog):
    assert catalog.add({"id": "round 2", "rounds": 1}).ok
    assert catalog.get("round 2") is not None


def test_subscribers_receive_snapshots(catalog):
    seen = []
    unsubscribe = catalog.subscribe(seen.append)
    catalog.add(UNUSED)
    catalog.remove("unused")
    unsubscribe()
    catalog.clear()

    assert len(seen) == 2
    assert seen[0].all_stages == (PRACTICE_SANITIZED, UNUSED_SANITIZED)
    assert seen[1].all_stages == (PRACTICE_SANITIZED,)
    assert seen[0].version < seen[1].version
    # Earlier snapshots are not touched by later changes.
    assert seen[0].active_stages == (PRACTICE_SANITIZED,)


def test_update_stage_rederives_rounds(catalog):
    result = catalog.update_stage(replace(PRACTICE_SANITIZED, rounds=4))
    assert result.ok
    assert catalog.all_stages == (SanitizedStage(0, "practice", "Practice rounds", 4, (1, 2, 3, 4)),)


def test_update_stage_unknown_id(catalog):
    result = catalog.update_stage(SanitizedStage(0, "foo", "", 1, (1,)))
    assert not result.ok
    assert result.error.kind is ErrorKind.NOT_FOUND


def test_update_stage_to_zero_rounds_leaves_active_view(catalog):
    catalog.update_stage(replace(PRACTICE_SANITIZED, rounds=0))
    assert catalog.stages == ()
    assert catalog.get("practice").round_sequence == ()


class TestMoveStage:
    @pytest.fixture(autouse=True)
    def two_stages(self, catalog):
        catalog.clear()
        catalog.add(PRACTICE)
        catalog.add(UNUSED)

    def test_move_down(self, catalog):
        catalog.move_stage(PRACTICE_SANITIZED, 1)
        assert catalog.all_stages == (
            SanitizedStage(0, "unused", "Foobar", 0, ()),
            SanitizedStage(1, "practice", "Practice rounds", 2, (1, 2)),
        )

    def test_move_up(self, catalog):
        catalog.move_stage(UNUSED_SANITIZED, -1)
        assert [s.id for s in catalog.all_stages] == ["unused", "practice"]

    def test_move_is_clamped(self, catalog):
        catalog.move_stage(PRACTICE_SANITIZED, -5)
        assert [s.id for s in catalog.all_stages] == ["practice", "unused"]
        catalog.move_stage(PRACTICE_SANITIZED, 99)
        assert [s.id for s in catalog.all_stages] == ["unused", "practice"]

    def test_move_unknown(self, catalog):
        result = catalog.move_stage(SanitizedStage(0, "nope", "", 0, ()), 1)
        assert result.error.kind is ErrorKind.NOT_FOUND


def test_move_and_move_back_restores_order(catalog):
    catalog.clear()
    for i in range(5):
        catalog.add({"id": f"s{i}", "name": f"Stage {i}", "rounds": i})
    original = catalog.raw_stages()
    for k in (1, 2, 3):
        stage = catalog.get("s1")
        catalog.move_stage(stage, k)
        catalog.move_stage(catalog.get("s1"), -k)
        assert catalog.raw_stages() == original


def test_get(catalog):
    assert catalog.get("practice") == PRACTICE_SANITIZED
    assert catalog.get("missing") is None


def test_update_with_duplicate_raw_stages_is_fatal(catalog):
    stage = StageDefinition(**PRACTICE)
    catalog._raw_stages = [stage, stage]
    with pytest.raises(DuplicateStageIdError, match="duplicate stage id practice"):
        catalog._update()


def test_derive_views_round_sequences():
    raws = [StageDefinition(id=f"s{n}", name="", rounds=n) for n in (0, 1, 3, 7)]
    all_stages, active = derive_views(raws)
    assert len(all_stages) == len(raws)
    for raw, stage in zip(raws, all_stages):
        assert len(stage.round_sequence) == raw.rounds
        assert stage.round_sequence == tuple(range(1, raw.rounds + 1))
    assert [s.index for s in active] == [0, 1, 2]
