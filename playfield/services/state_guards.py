"""Classification helpers for the two snapshot layouts.

A snapshot is either namespaced (slide ids at the root, each holding
`responses`/`assignments`/`assignmentResponses`) or legacy flat (the accessor
names at the root). During migration both can coexist in one snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Mapping, Optional

from playfield.schemas.state import StateAccessor

PHASE_KEY = "phase"
SHARED_STATE_KEY = "sharedState"

ACCESSOR_KEYS = frozenset(accessor.value for accessor in StateAccessor)
RESERVED_KEYS = frozenset({PHASE_KEY, SHARED_STATE_KEY} | ACCESSOR_KEYS)


class StateLayout(str, Enum):
    EMPTY = "empty"
    NAMESPACED = "namespaced"
    LEGACY = "legacy"
    MIXED = "mixed"


@dataclass(frozen=True)
class ClassifiedState:
    layout: StateLayout
    phase: Optional[str] = None
    slide_ids: List[str] = field(default_factory=list)
    namespace_keys: List[str] = field(default_factory=list)
    legacy_accessors: List[str] = field(default_factory=list)


def is_namespace_key(key: Any) -> bool:
    """Slide ids carry at least one hyphen and never collide with reserved keys."""
    if not isinstance(key, str) or key in RESERVED_KEYS:
        return False
    return "-" in key


def is_slide_data(value: Any) -> bool:
    if not isinstance(value, Mapping):
        return False
    return any(accessor in value for accessor in ACCESSOR_KEYS)


def get_slide_ids(state: Any) -> List[str]:
    if not isinstance(state, Mapping):
        return []
    return [
        key
        for key, value in state.items()
        if is_namespace_key(key) and is_slide_data(value)
    ]


def get_namespace_keys(state: Any) -> List[str]:
    """Return every slide-like key holding a mapping, populated or not."""
    if not isinstance(state, Mapping):
        return []
    return [
        key
        for key, value in state.items()
        if is_namespace_key(key) and isinstance(value, Mapping)
    ]


def is_namespaced_state(state: Any) -> bool:
    return bool(get_slide_ids(state))


def is_legacy_state(state: Any) -> bool:
    if not isinstance(state, Mapping):
        return False
    return any(accessor in state for accessor in ACCESSOR_KEYS)


def classify_state(state: Any) -> ClassifiedState:
    if not isinstance(state, Mapping):
        return ClassifiedState(layout=StateLayout.EMPTY)

    slide_ids = get_slide_ids(state)
    legacy_accessors = [
        accessor.value for accessor in StateAccessor if accessor.value in state
    ]
    if slide_ids and legacy_accessors:
        layout = StateLayout.MIXED
    elif legacy_accessors:
        layout = StateLayout.LEGACY
    elif slide_ids:
        layout = StateLayout.NAMESPACED
    else:
        layout = StateLayout.EMPTY

    phase = state.get(PHASE_KEY)
    return ClassifiedState(
        layout=layout,
        phase=phase if isinstance(phase, str) else None,
        slide_ids=slide_ids,
        namespace_keys=get_namespace_keys(state),
        legacy_accessors=legacy_accessors,
    )
