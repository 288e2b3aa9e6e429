from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from playfield.schemas.state import ParticipantLocalState, SlideStateInfo, StateAccessor
from playfield.services.state_guards import PHASE_KEY, RESERVED_KEYS
from playfield.services.transformers import count_entries
from playfield.utils.identifiers import build_submission_key

logger = logging.getLogger(__name__)

DEFAULT_PHASE = "initial"

LocalStateInput = Union[ParticipantLocalState, Mapping[str, Any]]


def analyze_slide_state(state: Any, slide_id: str) -> SlideStateInfo:
    """Report which accessors of one slide namespace hold data, and how much."""
    slide_data = state.get(slide_id) if isinstance(state, Mapping) else None
    if not isinstance(slide_data, Mapping):
        return SlideStateInfo(slide_id=slide_id)

    response_count = count_entries(slide_data.get(StateAccessor.RESPONSES.value))
    assignment_count = count_entries(slide_data.get(StateAccessor.ASSIGNMENTS.value))
    assignment_response_count = count_entries(
        slide_data.get(StateAccessor.ASSIGNMENT_RESPONSES.value)
    )
    return SlideStateInfo(
        slide_id=slide_id,
        has_responses=response_count > 0,
        has_assignments=assignment_count > 0,
        has_assignment_responses=assignment_response_count > 0,
        response_count=response_count,
        assignment_count=assignment_count,
        assignment_response_count=assignment_response_count,
    )


def _as_local_state(state: LocalStateInput) -> ParticipantLocalState:
    if isinstance(state, ParticipantLocalState):
        return state
    return ParticipantLocalState.model_validate(state)


def _namespace(snapshot: Dict[str, Any], namespace_id: str) -> Dict[str, Any]:
    entry = snapshot.get(namespace_id)
    if not isinstance(entry, dict):
        entry = {}
        snapshot[namespace_id] = entry
    return entry


def merge_participant_states(
    states: Iterable[LocalStateInput],
    previous: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Fold every participant's local state into one shared snapshot.

    Responses become one `<participantId>-<digest>` entry per submission under
    `snapshot[slide]["responses"]`, assignments are keyed by participant id
    under `snapshot[slide]["assignments"]` and custom variables land at the
    root. Only `phase` is carried over from `previous`.
    """
    phase = previous.get(PHASE_KEY) if isinstance(previous, Mapping) else None
    snapshot: Dict[str, Any] = {PHASE_KEY: phase if phase is not None else DEFAULT_PHASE}
    local_states = [_as_local_state(state) for state in states]

    for local in local_states:
        participant_id = local.participant_id
        for namespace_id, block_responses in local.responses.items():
            if namespace_id in RESERVED_KEYS:
                logger.warning(
                    "Skipping responses under reserved key participant=%s key=%s",
                    participant_id,
                    namespace_id,
                )
                continue
            responses = _namespace(snapshot, namespace_id).setdefault(
                StateAccessor.RESPONSES.value, {}
            )
            for block_id, response in (block_responses or {}).items():
                key = build_submission_key(participant_id, namespace_id, block_id)
                responses[key] = {block_id: response}

        for namespace_id, item_ids in local.assignments.items():
            if namespace_id in RESERVED_KEYS:
                logger.warning(
                    "Skipping assignments under reserved key participant=%s key=%s",
                    participant_id,
                    namespace_id,
                )
                continue
            assignments = _namespace(snapshot, namespace_id).setdefault(
                StateAccessor.ASSIGNMENTS.value, {}
            )
            assignments[participant_id] = list(item_ids or [])

    for local in local_states:
        for name, value in local.custom_variables.items():
            existing = snapshot.get(name)
            if name in RESERVED_KEYS or (existing is not None and _is_namespace_entry(existing)):
                logger.warning(
                    "Skipping custom variable with reserved or slide name participant=%s name=%s",
                    local.participant_id,
                    name,
                )
                continue
            bucket = snapshot.setdefault(name, {})
            bucket[build_submission_key(local.participant_id, name)] = value

    return snapshot


def _is_namespace_entry(value: Any) -> bool:
    return isinstance(value, Mapping) and any(
        accessor.value in value for accessor in StateAccessor
    )
