"""Host-side handout flow: resolve a data source, distribute it, publish assignments."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from playfield.schemas.distribution import (
    AssignmentMap,
    DistributionConfig,
    DistributionResult,
    Item,
    Participant,
)
from playfield.schemas.state import DataReference, StateAccessor
from playfield.services.distribution import DistributionEngine
from playfield.services.preview_engine import PreviewExecutionEngine
from playfield.services.variable_resolver import (
    VariableContext,
    VariableResolver,
    variable_resolver,
)
from playfield.utils.identifiers import split_submission_key, synthesize_item_id

logger = logging.getLogger(__name__)

DataSource = Union[DataReference, Mapping[str, Any], str]


def build_assignment_items(raw: Any) -> List[Item]:
    """Turn a resolved value into distributable items.

    Accepts item records (models or mappings), bare scalars and
    per-submission mappings; anything else yields no items. Records and
    scalars without an `id` get one derived from their position and value.
    """
    if isinstance(raw, Mapping):
        items: List[Item] = []
        for key, content in raw.items():
            if content is None:
                continue
            author_id, _ = split_submission_key(key)
            items.append(
                Item(
                    id=synthesize_item_id(str(key)),
                    content=content,
                    author_id=author_id or str(key),
                )
            )
        return items

    if not isinstance(raw, (list, tuple)):
        return []

    items = []
    for index, entry in enumerate(raw):
        if isinstance(entry, Item):
            items.append(entry)
        elif isinstance(entry, Mapping) and entry.get("id"):
            items.append(Item.model_validate(dict(entry)))
        elif isinstance(entry, Mapping):
            record = dict(entry)
            record["id"] = synthesize_item_id(f"{index}:{entry!r}")
            record.setdefault("content", dict(entry))
            items.append(Item.model_validate(record))
        elif entry is not None:
            items.append(
                Item(id=synthesize_item_id(f"{index}:{entry}"), content=entry)
            )
    return items


def assign_handout(
    engine: PreviewExecutionEngine,
    slide_id: str,
    data_source: DataSource,
    config: Union[DistributionConfig, Mapping[str, Any]],
    participants: Sequence[Union[Participant, Mapping[str, Any]]],
    caller_id: str = "",
    *,
    distribution: Optional[DistributionEngine] = None,
    resolver: Optional[VariableResolver] = None,
) -> DistributionResult:
    """Distribute the items behind `data_source` and publish them on `slide_id`.

    A rejected distribution leaves the session state untouched.
    """
    distribution = distribution or DistributionEngine()
    resolver = resolver or variable_resolver

    context = VariableContext(state=engine.get_state(), caller_id=caller_id, is_host=True)
    items = build_assignment_items(resolver.resolve(data_source, context))
    result = distribution.distribute(items, participants, config)
    if not result.success or result.assignments is None:
        logger.info(
            "Handout not published slide=%s items=%s errors=%s",
            slide_id,
            len(items),
            result.errors,
        )
        return result

    engine.update_slide_state(
        slide_id,
        StateAccessor.ASSIGNMENTS,
        {
            participant_id: list(item_ids)
            for participant_id, item_ids in result.assignments.participant_assignments.items()
        },
    )
    engine.send_event(
        {
            "type": f"{engine.activity.slug}:assignments-published",
            "slideId": slide_id,
            "assignmentMap": result.assignments.to_payload(),
            "items": [item.to_record() for item in items],
        }
    )
    return result


def clear_assignments(engine: PreviewExecutionEngine, slide_id: str) -> None:
    engine.update_slide_state(slide_id, StateAccessor.ASSIGNMENTS, None)


def get_assigned_items(
    assignment_map: AssignmentMap,
    items: Sequence[Item],
    participant_id: str,
) -> List[Item]:
    """Return the items handed to `participant_id`, in assignment order."""
    by_id: Dict[str, Item] = {item.id: item for item in items}
    return [
        by_id[item_id]
        for item_id in assignment_map.items_for(participant_id)
        if item_id in by_id
    ]
