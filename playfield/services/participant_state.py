from __future__ import annotations

import logging
from copy import deepcopy
from typing import Any, Dict, List, Optional

from playfield.config.loader import get_preview_settings
from playfield.schemas.distribution import Participant
from playfield.schemas.state import ParticipantLocalState, StateAccessor
from playfield.services.slide_state import merge_participant_states
from playfield.utils.identifiers import mock_participant_id

logger = logging.getLogger(__name__)


def generate_mock_participants(count: Optional[int] = None) -> List[Participant]:
    """Return `count` preview participants (config default when omitted)."""
    if count is None:
        count = get_preview_settings()["mock_participant_count"]
    return [
        Participant(id=mock_participant_id(index), name=f"Participant {index + 1}")
        for index in range(max(0, int(count)))
    ]


class ParticipantStateManager:
    """Simulated participants for preview mode, each with independent local state.

    Every local-state update rebuilds the shared snapshot through
    `merge_participant_states`; resolution only ever sees that snapshot.
    """

    def __init__(self, participant_count: Optional[int] = None) -> None:
        self._participants: List[Participant] = []
        self._states: Dict[str, ParticipantLocalState] = {}
        self._sequence = 0
        self._shared_state: Dict[str, Any] = {}
        self._current_participant_id = ""

        for participant in generate_mock_participants(participant_count):
            self._register(participant)
        if self._participants:
            self._current_participant_id = self._participants[0].id

    @property
    def participants(self) -> List[Participant]:
        return list(self._participants)

    @property
    def current_participant_id(self) -> str:
        return self._current_participant_id

    def _register(self, participant: Participant) -> None:
        self._sequence += 1
        self._participants.append(participant)
        self._states[participant.id] = ParticipantLocalState(participant_id=participant.id)

    def add_participant(self) -> Participant:
        participant = Participant(
            id=mock_participant_id(self._sequence),
            name=f"Participant {len(self._participants) + 1}",
        )
        self._register(participant)
        if not self._current_participant_id:
            self._current_participant_id = participant.id
        return participant

    def remove_participant(self, participant_id: str) -> None:
        self._participants = [p for p in self._participants if p.id != participant_id]
        self._states.pop(participant_id, None)
        if self._current_participant_id == participant_id:
            self._current_participant_id = (
                self._participants[0].id if self._participants else ""
            )
        self._rebuild_shared_state()

    def set_current_participant(self, participant_id: str) -> None:
        if participant_id in self._states:
            self._current_participant_id = participant_id
        else:
            logger.debug("Ignoring switch to unknown participant %s", participant_id)

    def get_participant_state(self, participant_id: str) -> ParticipantLocalState:
        state = self._states.get(participant_id)
        if state is None:
            return ParticipantLocalState(participant_id=participant_id)
        return state.model_copy(deep=True)

    def update_participant_state(self, participant_id: str, **updates: Any) -> None:
        current = self.get_participant_state(participant_id)
        self._states[participant_id] = current.model_copy(update=deepcopy(updates))
        self._rebuild_shared_state()

    def record_response(
        self, participant_id: str, slide_id: str, block_id: str, value: Any
    ) -> None:
        responses = self.get_participant_state(participant_id).responses
        responses.setdefault(slide_id, {})[block_id] = value
        self.update_participant_state(participant_id, responses=responses)

    def get_shared_state(self) -> Dict[str, Any]:
        return deepcopy(self._shared_state)

    def update_shared_state(self, patch: Dict[str, Any]) -> None:
        self._shared_state = {**self._shared_state, **deepcopy(patch)}

    def get_slide_state(self, slide_id: str, accessor: StateAccessor) -> Any:
        slide_data = self._shared_state.get(slide_id)
        if not isinstance(slide_data, dict):
            return {}
        return deepcopy(slide_data.get(StateAccessor(accessor).value) or {})

    def update_slide_state(self, slide_id: str, accessor: StateAccessor, value: Any) -> None:
        slide_data = self._shared_state.get(slide_id)
        if not isinstance(slide_data, dict):
            slide_data = {}
            self._shared_state[slide_id] = slide_data
        slide_data[StateAccessor(accessor).value] = deepcopy(value)

    def _rebuild_shared_state(self) -> None:
        self._shared_state = merge_participant_states(
            self._states.values(), previous=self._shared_state
        )
