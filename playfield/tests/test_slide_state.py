from playfield.schemas.state import ParticipantLocalState
from playfield.services.slide_state import analyze_slide_state, merge_participant_states
from playfield.services.state_guards import ACCESSOR_KEYS
from playfield.utils.identifiers import build_submission_key, split_submission_key


def test_analyze_counts_each_accessor():
    state = {
        "phase": "slide-1",
        "slide-1": {
            "responses": {"u1-a": "x", "u2-b": "y"},
            "assignments": {},
            "assignmentResponses": [{"id": "r1"}],
        },
    }

    info = analyze_slide_state(state, "slide-1")

    assert info.has_responses is True
    assert info.response_count == 2
    assert info.has_assignments is False
    assert info.assignment_count == 0
    assert info.has_assignment_responses is True
    assert info.assignment_response_count == 1
    assert info.to_payload()["responseCount"] == 2


def test_analyze_missing_namespace_is_all_empty():
    for state in ({"phase": "x"}, {"slide-1": "not a mapping"}, None):
        info = analyze_slide_state(state, "slide-1")
        assert info.slide_id == "slide-1"
        assert not (info.has_responses or info.has_assignments or info.has_assignment_responses)
        assert info.response_count == info.assignment_count == info.assignment_response_count == 0


def _local_states():
    return [
        ParticipantLocalState(
            participant_id="p1",
            responses={"slide-1": {"block-a": "hello"}},
            assignments={"slide-1": ["item-1"]},
            custom_variables={"nickname": "Ada"},
        ),
        ParticipantLocalState(
            participant_id="p2",
            responses={"slide-1": {"block-a": "world", "block-b": 5}},
        ),
    ]


def test_merge_nests_responses_under_synthesized_keys():
    snapshot = merge_participant_states(_local_states())

    responses = snapshot["slide-1"]["responses"]
    assert len(responses) == 3
    assert responses[build_submission_key("p1", "slide-1", "block-a")] == {"block-a": "hello"}
    assert sorted(split_submission_key(key)[0] for key in responses) == ["p1", "p2", "p2"]


def test_merge_keys_assignments_by_participant():
    snapshot = merge_participant_states(_local_states())

    assert snapshot["slide-1"]["assignments"] == {"p1": ["item-1"]}


def test_merge_places_custom_variables_at_root():
    snapshot = merge_participant_states(_local_states())

    assert snapshot["nickname"] == {build_submission_key("p1", "nickname"): "Ada"}


def test_merge_preserves_phase():
    assert merge_participant_states([])["phase"] == "initial"
    assert merge_participant_states([], previous={"phase": "slide-3", "junk": 1}) == {"phase": "slide-3"}


def test_merge_never_puts_accessors_at_root():
    states = [
        {
            "participantId": "p1",
            "responses": {"responses": {"block-a": "x"}, "slide-1": {"block-a": "y"}},
            "customVariables": {"assignments": ["sneaky"], "slide-1": "collides"},
        }
    ]

    snapshot = merge_participant_states(states)

    assert not ACCESSOR_KEYS & set(snapshot)
    assert snapshot["slide-1"]["responses"] == {
        build_submission_key("p1", "slide-1", "block-a"): {"block-a": "y"}
    }


def test_merge_is_repeatable():
    assert merge_participant_states(_local_states()) == merge_participant_states(_local_states())
