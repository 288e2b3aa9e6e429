from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Set, Union

from playfield.schemas.state import DataReference
from playfield.services.state_guards import (
    ACCESSOR_KEYS,
    PHASE_KEY,
    StateLayout,
    classify_state,
)
from playfield.services.transformers import apply_transform
from playfield.utils.identifiers import now_ms, split_submission_key, synthesize_item_id

logger = logging.getLogger(__name__)

Reference = Union[DataReference, Mapping[str, Any], str]


@dataclass(frozen=True)
class VariableContext:
    state: Optional[Mapping[str, Any]]
    caller_id: str = ""
    is_host: bool = False


@dataclass(frozen=True)
class Resolution:
    value: Any
    found: bool


def is_submission_mapping(value: Any) -> bool:
    """True for non-empty mappings keyed `<author>-<suffix>` throughout."""
    if not isinstance(value, Mapping) or not value:
        return False
    return all(split_submission_key(key)[0] is not None for key in value)


class VariableResolver:
    """Resolve structured and string references against a state snapshot.

    The snapshot is only read. Misses resolve to empty values instead of
    raising so an unpopulated slide never breaks a render.
    """

    def __init__(self, logger: Optional[Callable[[str], None]] = None) -> None:
        self.logger = logger or _default_notice
        self._deprecation_notified: Set[str] = set()
        self._first_seen: Dict[str, int] = {}

    def resolve(self, reference: Reference, context: VariableContext) -> Any:
        return self.resolve_detailed(reference, context).value

    def resolve_detailed(
        self, reference: Reference, context: VariableContext
    ) -> Resolution:
        if isinstance(reference, str):
            return self._resolve_name(reference, context)
        if not isinstance(reference, DataReference):
            reference = DataReference.model_validate(reference)
        return self._resolve_reference(reference, context)

    def _resolve_reference(
        self, reference: DataReference, context: VariableContext
    ) -> Resolution:
        state = _state_of(context)
        slide_data = state.get(reference.namespace_id)
        if not isinstance(slide_data, Mapping):
            return Resolution(value={}, found=False)

        accessor_data = slide_data.get(reference.accessor.value)
        if accessor_data is None:
            return Resolution(value={}, found=False)

        value = apply_transform(accessor_data, reference.transformer, context.caller_id)
        return Resolution(value=value, found=True)

    def _resolve_name(self, name: str, context: VariableContext) -> Resolution:
        state = _state_of(context)

        if name in state:
            return Resolution(value=self._to_items(state[name]), found=True)

        if "." in name:
            current: Any = state
            for segment in name.split("."):
                if not isinstance(current, Mapping) or segment not in current:
                    return Resolution(value=[], found=False)
                current = current[segment]
            return Resolution(value=self._to_items(current), found=True)

        if name == PHASE_KEY or name in ACCESSOR_KEYS:
            return Resolution(value=[], found=False)

        classified = classify_state(state)
        if classified.layout is StateLayout.MIXED:
            logger.debug("Resolving %r against a mixed legacy/namespaced snapshot", name)
        for namespace_id in classified.namespace_keys:
            namespace = state[namespace_id]
            if name in namespace:
                self._notify_deprecated(name, namespace_id)
                return Resolution(value=self._to_items(namespace[name]), found=True)

        return Resolution(value=[], found=False)

    def _to_items(self, value: Any) -> Any:
        if not is_submission_mapping(value):
            return value
        items: List[Dict[str, Any]] = []
        for key, content in value.items():
            author_id, suffix = split_submission_key(key)
            items.append(
                {
                    "id": synthesize_item_id(key),
                    "content": content,
                    "authorId": author_id,
                    "createdAt": self._created_at(key, suffix),
                }
            )
        return items

    def _created_at(self, key: str, suffix: str) -> int:
        if suffix.isdigit():
            return int(suffix)
        if key not in self._first_seen:
            self._first_seen[key] = now_ms()
        return self._first_seen[key]

    def _notify_deprecated(self, name: str, namespace_id: str) -> None:
        if name in self._deprecation_notified:
            return
        self._deprecation_notified.add(name)
        self.logger(
            f"DEPRECATED: variable '{name}' was resolved from slide namespace "
            f"'{namespace_id}'. Use a structured data reference instead."
        )


def _default_notice(message: str) -> None:
    logger.warning(message)


def _state_of(context: VariableContext) -> Mapping[str, Any]:
    state = context.state
    return state if isinstance(state, Mapping) else {}


variable_resolver = VariableResolver()


def resolve_variable(reference: Reference, context: VariableContext) -> Any:
    return variable_resolver.resolve(reference, context)
