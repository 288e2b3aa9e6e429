from __future__ import annotations

import logging
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from playfield.schemas.distribution import Participant
from playfield.schemas.state import StateAccessor
from playfield.services.participant_state import generate_mock_participants
from playfield.services.state_guards import PHASE_KEY
from playfield.utils.identifiers import now_ms

logger = logging.getLogger(__name__)

EVENT_CHANNEL = "event"
STATE_UPDATE_EVENT = {"type": "state-update"}

Listener = Callable[[Dict[str, Any]], None]


@dataclass(frozen=True)
class PreviewSlide:
    id: str
    title: str = ""


@dataclass
class PreviewActivity:
    slug: str
    slides: List[PreviewSlide] = field(default_factory=list)
    shared_state: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "PreviewActivity":
        slides = []
        for entry in payload.get("slides") or []:
            if isinstance(entry, PreviewSlide):
                slides.append(entry)
            elif isinstance(entry, dict) and str(entry.get("id") or "").strip():
                slides.append(
                    PreviewSlide(id=str(entry["id"]).strip(), title=str(entry.get("title") or ""))
                )
        shared = payload.get("shared_state", payload.get("sharedState"))
        return cls(
            slug=str(payload.get("slug") or "activity"),
            slides=slides,
            shared_state=dict(shared) if isinstance(shared, dict) else {},
        )


@dataclass(frozen=True)
class EventLogEntry:
    timestamp: int
    event: Dict[str, Any]


class PreviewExecutionEngine:
    """
    Single-session coordinator for an activity preview.

    Owns the state snapshot and the event log. All writes go through
    `set_state`; readers always receive copies. Listeners are called
    synchronously once the mutation that triggered them is committed.
    """

    def __init__(
        self,
        activity: PreviewActivity,
        participants: Optional[List[Participant]] = None,
    ) -> None:
        self.activity = activity
        self._state: Dict[str, Any] = {PHASE_KEY: f"{activity.slug}:start"}
        self._event_log: List[EventLogEntry] = []
        self._listeners: Dict[str, List[Listener]] = {}
        self._participants = (
            list(participants) if participants is not None else generate_mock_participants()
        )

    def get_mock_participants(self) -> List[Participant]:
        return list(self._participants)

    def start(self) -> None:
        slides = self.activity.slides
        first_phase = slides[0].id if slides else ""

        slide_states = {
            slide.id: {
                StateAccessor.RESPONSES.value: {},
                StateAccessor.ASSIGNMENTS.value: {},
                StateAccessor.ASSIGNMENT_RESPONSES.value: [],
            }
            for slide in slides
        }
        self._state = {
            PHASE_KEY: first_phase,
            **slide_states,
            **deepcopy(self.activity.shared_state),
        }
        self._log_event({"type": f"{self.activity.slug}:start", "phase": first_phase})
        logger.debug(
            "Preview started slug=%s slides=%s phase=%s",
            self.activity.slug,
            len(slides),
            first_phase,
        )

    def get_state(self) -> Dict[str, Any]:
        return deepcopy(self._state)

    def get_event_log(self) -> List[EventLogEntry]:
        return [EventLogEntry(entry.timestamp, deepcopy(entry.event)) for entry in self._event_log]

    def on(self, channel: str, callback: Listener) -> Callable[[], None]:
        """Register a listener; the returned callable removes it again."""
        self._listeners.setdefault(channel, []).append(callback)

        def _unsubscribe() -> None:
            listeners = self._listeners.get(channel, [])
            if callback in listeners:
                listeners.remove(callback)

        return _unsubscribe

    def send_event(self, event: Dict[str, Any]) -> None:
        self._log_event(event)
        self._notify(event)

    def set_state(self, patch: Dict[str, Any]) -> None:
        self._state = {**self._state, **deepcopy(patch)}
        self._notify(STATE_UPDATE_EVENT)

    def update_slide_state(self, slide_id: str, accessor: StateAccessor, value: Any) -> None:
        """Replace one accessor of one slide namespace wholesale."""
        accessor = StateAccessor(accessor)
        current = self._state.get(slide_id)
        slide_data = deepcopy(current) if isinstance(current, dict) else {}
        slide_data[accessor.value] = value
        self.set_state({slide_id: slide_data})
        self.send_event(
            {
                "type": f"{self.activity.slug}:slide-state-update",
                "slideId": slide_id,
                "accessor": accessor.value,
            }
        )

    def _log_event(self, event: Dict[str, Any]) -> None:
        self._event_log.append(EventLogEntry(timestamp=now_ms(), event=deepcopy(event)))

    def _notify(self, event: Dict[str, Any]) -> None:
        for callback in list(self._listeners.get(EVENT_CHANNEL, [])):
            try:
                callback(deepcopy(event))
            except Exception:  # noqa: BLE001
                logger.exception(
                    "Preview listener failed slug=%s event=%s",
                    self.activity.slug,
                    event.get("type") if isinstance(event, dict) else event,
                )
