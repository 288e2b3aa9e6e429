import random

import pytest

from playfield.schemas.distribution import DistributionConfig, Item, Participant
from playfield.schemas.state import DataReference
from playfield.services.distribution import DistributionEngine
from playfield.services.distribution_validation import NO_ITEMS_ERROR
from playfield.services.handout import (
    assign_handout,
    build_assignment_items,
    clear_assignments,
    get_assigned_items,
)
from playfield.services.preview_engine import PreviewActivity, PreviewExecutionEngine, PreviewSlide
from playfield.services.variable_resolver import VariableContext, VariableResolver
from playfield.utils.identifiers import synthesize_item_id

SUBMISSIONS = {"p1-aaa": "Idea A", "p2-bbb": "Idea B", "p3-ccc": "Idea C"}


@pytest.fixture
def engine():
    engine = PreviewExecutionEngine(
        PreviewActivity(
            slug="handout",
            slides=[PreviewSlide(id="slide-1", title="Collect"), PreviewSlide(id="slide-2", title="Review")],
        )
    )
    engine.start()
    engine.update_slide_state("slide-1", "responses", dict(SUBMISSIONS))
    return engine


@pytest.fixture
def quiet_resolver():
    return VariableResolver(logger=lambda message: None)


def test_build_items_from_submission_mapping():
    items = build_assignment_items(dict(SUBMISSIONS, **{"p4-ddd": None}))

    assert [item.content for item in items] == ["Idea A", "Idea B", "Idea C"]
    assert [item.author_id for item in items] == ["p1", "p2", "p3"]
    assert items[0].id == synthesize_item_id("p1-aaa")


def test_build_items_from_records_and_scalars():
    existing = Item(id="keep", content="as is")
    items = build_assignment_items(
        [existing, {"id": "r1", "content": "record", "authorId": "p2"}, "plain", None]
    )

    assert items[0] is existing
    assert items[1].author_id == "p2"
    assert items[2].content == "plain"
    assert items[2].id == synthesize_item_id("2:plain")
    assert len(items) == 3


def test_build_items_keeps_records_without_ids():
    records = [
        {"participantId": "p1", "response": "Looks good"},
        {"content": "Second pass", "authorId": "p2"},
    ]

    first = build_assignment_items(records)
    second = build_assignment_items(records)

    assert len(first) == 2
    assert first[0].content == {"participantId": "p1", "response": "Looks good"}
    assert first[1].content == "Second pass"
    assert first[1].author_id == "p2"
    assert [item.id for item in first] == [item.id for item in second]
    assert first[0].id != first[1].id


def test_build_items_from_unusable_values():
    assert build_assignment_items(None) == []
    assert build_assignment_items(7) == []
    assert build_assignment_items("text") == []


def test_string_and_structured_sources_agree_on_ids(quiet_resolver, engine):
    context = VariableContext(state=engine.get_state())
    via_path = build_assignment_items(quiet_resolver.resolve("slide-1.responses", context))
    via_reference = build_assignment_items(
        quiet_resolver.resolve(DataReference(namespace_id="slide-1", accessor="responses"), context)
    )

    assert sorted(item.id for item in via_path) == sorted(item.id for item in via_reference)


def test_assign_handout_publishes_assignments(engine, quiet_resolver):
    participants = [Participant(id="p1"), Participant(id="p2"), Participant(id="p3")]
    reference = DataReference(namespace_id="slide-1", accessor="responses")

    result = assign_handout(
        engine,
        "slide-2",
        reference,
        DistributionConfig(mode="exclude-own"),
        participants,
        caller_id="host",
        distribution=DistributionEngine(rng=random.Random(7)),
        resolver=quiet_resolver,
    )

    assert result.success is True
    published = engine.get_state()["slide-2"]["assignments"]
    assert published == result.assignments.participant_assignments
    items = build_assignment_items(SUBMISSIONS)
    for participant in participants:
        handed = get_assigned_items(result.assignments, items, participant.id)
        assert len(handed) == 1
        assert handed[0].author_id != participant.id

    event = engine.get_event_log()[-1].event
    assert event["type"] == "handout:assignments-published"
    assert event["assignmentMap"]["distributionMode"] == "exclude-own"
    assert len(event["items"]) == 3


def test_rejected_handout_leaves_state_alone(engine, quiet_resolver):
    before = engine.get_state()

    result = assign_handout(
        engine,
        "slide-2",
        "slide-9.responses",
        DistributionConfig(),
        [Participant(id="p1")],
        resolver=quiet_resolver,
    )

    assert result.success is False
    assert NO_ITEMS_ERROR in result.errors
    assert engine.get_state() == before


def test_clear_and_reassign_replaces_wholesale(engine, quiet_resolver):
    participants = [Participant(id="p1"), Participant(id="p2"), Participant(id="p3")]
    config = DistributionConfig(mode="round-robin")

    assign_handout(engine, "slide-2", "slide-1.responses", config, participants, resolver=quiet_resolver)
    clear_assignments(engine, "slide-2")
    assert engine.get_state()["slide-2"]["assignments"] is None

    result = assign_handout(
        engine, "slide-2", "slide-1.responses", config, participants[:2], resolver=quiet_resolver
    )

    assert set(engine.get_state()["slide-2"]["assignments"]) == {"p1", "p2"}
    assert result.assignments.total_participants == 2


def test_get_assigned_items_ignores_unknown_ids(items, participants, base_config):
    engine = DistributionEngine()
    result = engine.distribute(items, participants, base_config)

    assert [item.id for item in get_assigned_items(result.assignments, items[:1], "p1")] == ["i1"]
    assert get_assigned_items(result.assignments, items[:1], "p2") == []
