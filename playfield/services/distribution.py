from __future__ import annotations

import logging
import random
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Set, Union

from playfield.config.loader import get_distribution_defaults
from playfield.schemas.distribution import (
    AssignmentMap,
    DistributionConfig,
    DistributionMode,
    DistributionResult,
    Item,
    Participant,
    ValidationResult,
)
from playfield.services.distribution_validation import validate_distribution

logger = logging.getLogger(__name__)

ItemInput = Union[Item, Mapping[str, Any]]
ParticipantInput = Union[Participant, Mapping[str, Any]]
ConfigInput = Union[DistributionConfig, Mapping[str, Any]]


def default_distribution_config(**overrides: Any) -> DistributionConfig:
    """Build a config from the configured defaults, with keyword overrides."""
    payload: Dict[str, Any] = get_distribution_defaults()
    payload.update(overrides)
    mode = payload.get("mode")
    mode_value = mode.value if isinstance(mode, DistributionMode) else str(mode or "")
    payload.setdefault(
        "exclude_own_responses", mode_value == DistributionMode.EXCLUDE_OWN.value
    )
    return DistributionConfig.model_validate(payload)


def _as_items(items: Sequence[ItemInput]) -> List[Item]:
    return [item if isinstance(item, Item) else Item.model_validate(item) for item in items]


def _as_participants(participants: Sequence[ParticipantInput]) -> List[Participant]:
    return [
        participant
        if isinstance(participant, Participant)
        else Participant.model_validate(participant)
        for participant in participants
    ]


def _as_config(config: ConfigInput) -> DistributionConfig:
    if isinstance(config, DistributionConfig):
        return config
    return DistributionConfig.model_validate(config)


def _build_map(
    assigned: Dict[str, List[Item]],
    items: Sequence[Item],
    participants: Sequence[Participant],
    mode: DistributionMode,
) -> AssignmentMap:
    item_assignments: Dict[str, str] = {}
    participant_assignments: Dict[str, List[str]] = {}
    for participant_id, participant_items in assigned.items():
        participant_assignments[participant_id] = [item.id for item in participant_items]
        for item in participant_items:
            item_assignments[item.id] = participant_id
    return AssignmentMap(
        item_assignments=item_assignments,
        participant_assignments=participant_assignments,
        distribution_mode=mode,
        total_items=len(items),
        total_participants=len(participants),
    )


def distribute_one_per_participant(
    items: Sequence[ItemInput],
    participants: Sequence[ParticipantInput],
    config: ConfigInput,
    *,
    rng: Optional[random.Random] = None,
) -> AssignmentMap:
    """Pair participants[i] with items[i]; items past the participant count stay unassigned."""
    items = _as_items(items)
    participants = _as_participants(participants)
    config = _as_config(config)

    assigned: Dict[str, List[Item]] = {}
    for index, participant in enumerate(participants):
        if index < len(items):
            assigned[participant.id] = [items[index]]
        elif config.allow_empty_assignments:
            assigned[participant.id] = []
    return _build_map(assigned, items, participants, DistributionMode.ONE_PER_PARTICIPANT)


def distribute_round_robin(
    items: Sequence[ItemInput],
    participants: Sequence[ParticipantInput],
    config: ConfigInput,
    *,
    rng: Optional[random.Random] = None,
) -> AssignmentMap:
    items = _as_items(items)
    participants = _as_participants(participants)
    return _build_map(
        _round_robin(items, participants),
        items,
        participants,
        DistributionMode.ROUND_ROBIN,
    )


def _round_robin(
    items: Sequence[Item], participants: Sequence[Participant]
) -> Dict[str, List[Item]]:
    assigned: Dict[str, List[Item]] = {participant.id: [] for participant in participants}
    if not participants:
        return assigned
    for index, item in enumerate(items):
        participant = participants[index % len(participants)]
        assigned[participant.id].append(item)
    return assigned


def distribute_random(
    items: Sequence[ItemInput],
    participants: Sequence[ParticipantInput],
    config: ConfigInput,
    *,
    rng: Optional[random.Random] = None,
) -> AssignmentMap:
    rng = rng or random.Random()
    items = _as_items(items)
    participants = _as_participants(participants)
    shuffled = list(items)
    rng.shuffle(shuffled)
    return _build_map(
        _round_robin(shuffled, participants),
        items,
        participants,
        DistributionMode.RANDOM,
    )


def distribute_exclude_own(
    items: Sequence[ItemInput],
    participants: Sequence[ParticipantInput],
    config: ConfigInput,
    *,
    rng: Optional[random.Random] = None,
) -> AssignmentMap:
    """Give each participant one random item they did not author.

    An item goes to at most one participant. Picks are random, and earlier
    picks are re-routed when that lets a later participant still receive an
    eligible item, so the number of served participants is maximal.
    """
    rng = rng or random.Random()
    items = _as_items(items)
    participants = _as_participants(participants)
    config = _as_config(config)

    eligible: Dict[str, List[int]] = {}
    for participant in participants:
        candidates = [
            index for index, item in enumerate(items) if item.author_id != participant.id
        ]
        rng.shuffle(candidates)
        eligible[participant.id] = candidates

    owner_of = _match_participants(participants, eligible, len(items))

    picked: Dict[str, Item] = {
        participant_id: items[index] for index, participant_id in owner_of.items()
    }
    assigned: Dict[str, List[Item]] = {}
    for participant in participants:
        item = picked.get(participant.id)
        if item is not None:
            assigned[participant.id] = [item]
        elif config.allow_empty_assignments:
            assigned[participant.id] = []
    return _build_map(assigned, items, participants, DistributionMode.EXCLUDE_OWN)


def _match_participants(
    participants: Sequence[Participant],
    eligible: Dict[str, List[int]],
    item_count: int,
) -> Dict[int, str]:
    """Maximum matching of participants to item indexes, as `{index: participant_id}`.

    A greedy pass takes the first free candidate of each participant; the
    rest are served through augmenting paths found with an explicit stack.
    """
    owner_of: Dict[int, str] = {}
    unmatched: List[str] = []
    for participant in participants:
        free = next(
            (index for index in eligible[participant.id] if index not in owner_of), None
        )
        if free is None:
            unmatched.append(participant.id)
        else:
            owner_of[free] = participant.id

    # Items proven unreachable stay marked until an augmentation changes the matching.
    visited: Set[int] = set()
    for participant_id in unmatched:
        if len(owner_of) >= item_count:
            break
        if _augment(participant_id, eligible, owner_of, visited):
            visited = set()
    return owner_of


def _augment(
    start: str,
    eligible: Dict[str, List[int]],
    owner_of: Dict[int, str],
    visited: Set[int],
) -> bool:
    path: List[str] = [start]
    via: List[int] = []
    pending: List[Iterator[int]] = [iter(eligible[start])]

    while path:
        participant_id = path[-1]
        for index in pending[-1]:
            if index in visited:
                continue
            visited.add(index)
            holder = owner_of.get(index)
            if holder is None:
                owner_of[index] = participant_id
                for depth in range(len(via) - 1, -1, -1):
                    owner_of[via[depth]] = path[depth]
                return True
            via.append(index)
            path.append(holder)
            pending.append(iter(eligible[holder]))
            break
        else:
            path.pop()
            pending.pop()
            if via:
                via.pop()
    return False


Algorithm = Callable[..., AssignmentMap]

_ALGORITHMS: Dict[DistributionMode, Algorithm] = {
    DistributionMode.ONE_PER_PARTICIPANT: distribute_one_per_participant,
    DistributionMode.ROUND_ROBIN: distribute_round_robin,
    DistributionMode.RANDOM: distribute_random,
    DistributionMode.EXCLUDE_OWN: distribute_exclude_own,
}


def distribute_items(
    items: Sequence[ItemInput],
    participants: Sequence[ParticipantInput],
    config: ConfigInput,
    *,
    rng: Optional[random.Random] = None,
) -> AssignmentMap:
    """Dispatch to the algorithm named by `config.mode`."""
    config = _as_config(config)
    algorithm = _ALGORITHMS.get(config.mode, distribute_one_per_participant)
    return algorithm(items, participants, config, rng=rng)


class DistributionEngine:
    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng

    def validate(
        self,
        items: Sequence[ItemInput],
        participants: Sequence[ParticipantInput],
        config: ConfigInput,
    ) -> ValidationResult:
        return validate_distribution(items, participants, config)

    def preview(
        self,
        items: Sequence[ItemInput],
        participants: Sequence[ParticipantInput],
        config: ConfigInput,
    ) -> AssignmentMap:
        return distribute_items(items, participants, config, rng=self.rng)

    def distribute(
        self,
        items: Sequence[ItemInput],
        participants: Sequence[ParticipantInput],
        config: ConfigInput,
    ) -> DistributionResult:
        config = _as_config(config)
        validation = self.validate(items, participants, config)
        if not validation.valid:
            logger.info(
                "Distribution rejected mode=%s items=%s participants=%s errors=%s",
                config.mode.value,
                len(items),
                len(participants),
                validation.errors,
            )
            return DistributionResult(
                success=False,
                warnings=validation.warnings,
                errors=validation.errors,
            )

        assignments = self.preview(items, participants, config)
        logger.debug(
            "Distributed mode=%s assigned=%s of %s items to %s participants",
            assignments.distribution_mode.value,
            len(assignments.item_assignments),
            assignments.total_items,
            assignments.total_participants,
        )
        return DistributionResult(
            success=True,
            assignments=assignments,
            warnings=validation.warnings,
        )
