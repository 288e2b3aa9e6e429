from __future__ import annotations

from typing import Any, List, Mapping, Sequence, Union

from playfield.schemas.distribution import (
    DistributionConfig,
    DistributionMode,
    Item,
    MismatchHandling,
    Participant,
    ValidationResult,
)

NO_ITEMS_ERROR = "No items available for distribution"
NO_PARTICIPANTS_ERROR = "No participants available for distribution"

DEFAULT_SUGGESTIONS = (
    "Consider changing distribution mode",
    "Adjust mismatch handling settings",
    "Ensure sufficient items are collected before distribution",
)


def _author_of(item: Union[Item, Mapping[str, Any]]) -> Any:
    if isinstance(item, Mapping):
        return item.get("authorId", item.get("author_id"))
    return getattr(item, "author_id", None)


def _participant_id(participant: Union[Participant, Mapping[str, Any]]) -> Any:
    if isinstance(participant, Mapping):
        return participant.get("id")
    return getattr(participant, "id", None)


def validate_distribution(
    items: Sequence[Union[Item, Mapping[str, Any]]],
    participants: Sequence[Union[Participant, Mapping[str, Any]]],
    config: Union[DistributionConfig, Mapping[str, Any]],
) -> ValidationResult:
    """Check distribution feasibility before any assignment is made.

    Inputs are only read, so the check can run any number of times.
    """
    if not isinstance(config, DistributionConfig):
        config = DistributionConfig.model_validate(config)

    errors: List[str] = []
    warnings: List[str] = []
    item_count = len(items)
    participant_count = len(participants)
    strict = config.mismatch_handling is MismatchHandling.STRICT

    if item_count == 0:
        errors.append(NO_ITEMS_ERROR)
    if participant_count == 0:
        errors.append(NO_PARTICIPANTS_ERROR)

    if participant_count > 0 and item_count > participant_count:
        if strict and not config.allow_multiple_per_participant:
            errors.append(
                f"More items ({item_count}) than participants ({participant_count}). "
                'Enable "Allow multiple per participant" or change mismatch handling.'
            )
        else:
            warnings.append(
                "Some participants will receive multiple items "
                f"({item_count} items, {participant_count} participants)"
            )

    if item_count > 0 and item_count < participant_count:
        if strict and not config.allow_empty_assignments:
            errors.append(
                f"Fewer items ({item_count}) than participants ({participant_count}). "
                'Enable "Allow empty assignments" or change mismatch handling.'
            )
        else:
            warnings.append(
                "Some participants will not receive items "
                f"({item_count} items, {participant_count} participants)"
            )

    if config.mode is DistributionMode.EXCLUDE_OWN:
        without_eligible = [
            participant
            for participant in participants
            if not any(
                _author_of(item) != _participant_id(participant) for item in items
            )
        ]
        if without_eligible:
            warnings.append(
                f"{len(without_eligible)} participant(s) have no eligible items "
                "(all items were created by them)"
            )

    return ValidationResult(
        valid=not errors,
        errors=errors,
        warnings=warnings,
        suggestions=list(DEFAULT_SUGGESTIONS) if errors else None,
    )
