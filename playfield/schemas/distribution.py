from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)

from playfield.utils.identifiers import now_ms

logger = logging.getLogger(__name__)


class DistributionMode(str, Enum):
    ONE_PER_PARTICIPANT = "one-per-participant"
    ROUND_ROBIN = "round-robin"
    RANDOM = "random"
    EXCLUDE_OWN = "exclude-own"


class MismatchHandling(str, Enum):
    AUTO = "auto"
    MANUAL = "manual"
    STRICT = "strict"


class Item(BaseModel):
    """One collected item offered for distribution."""

    model_config = ConfigDict(extra="allow", frozen=True)

    id: str = Field(..., min_length=1)
    content: Any = None
    author_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("author_id", "authorId")
    )
    created_at: int = Field(
        default_factory=now_ms,
        validation_alias=AliasChoices("created_at", "createdAt"),
    )

    def to_record(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {
            "id": self.id,
            "content": self.content,
            "createdAt": self.created_at,
        }
        if self.author_id is not None:
            record["authorId"] = self.author_id
        return record


class Participant(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str = ""
    is_host: bool = Field(
        default=False, validation_alias=AliasChoices("is_host", "isHost")
    )


class DistributionConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    mode: DistributionMode = DistributionMode.ONE_PER_PARTICIPANT
    mismatch_handling: MismatchHandling = Field(
        default=MismatchHandling.AUTO,
        validation_alias=AliasChoices("mismatch_handling", "mismatchHandling"),
    )
    exclude_own_responses: bool = Field(
        default=False,
        validation_alias=AliasChoices("exclude_own_responses", "excludeOwnResponses"),
    )
    allow_multiple_per_participant: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "allow_multiple_per_participant", "allowMultiplePerParticipant"
        ),
    )
    allow_empty_assignments: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "allow_empty_assignments", "allowEmptyAssignments"
        ),
    )

    @field_validator("mode", mode="before")
    @classmethod
    def _degrade_unknown_mode(cls, value: Any) -> Any:
        if isinstance(value, DistributionMode):
            return value
        candidate = str(value or "").strip().lower()
        try:
            return DistributionMode(candidate)
        except ValueError:
            logger.warning(
                "Unknown distribution mode %r; using %s",
                value,
                DistributionMode.ONE_PER_PARTICIPANT.value,
            )
            return DistributionMode.ONE_PER_PARTICIPANT

    @field_validator("mismatch_handling", mode="before")
    @classmethod
    def _degrade_unknown_mismatch(cls, value: Any) -> Any:
        if isinstance(value, MismatchHandling):
            return value
        candidate = str(value or "").strip().lower()
        try:
            return MismatchHandling(candidate)
        except ValueError:
            logger.warning(
                "Unknown mismatch handling %r; using %s",
                value,
                MismatchHandling.AUTO.value,
            )
            return MismatchHandling.AUTO


class AssignmentMap(BaseModel):
    """
    Bidirectional record of one distribution run.

    Every item id in `item_assignments` appears in exactly one participant's
    list in `participant_assignments` and vice versa.
    """

    item_assignments: Dict[str, str] = Field(default_factory=dict)
    participant_assignments: Dict[str, List[str]] = Field(default_factory=dict)
    created_at: int = Field(default_factory=now_ms)
    distribution_mode: DistributionMode
    total_items: int = Field(default=0, ge=0)
    total_participants: int = Field(default=0, ge=0)

    def is_consistent(self) -> bool:
        """True when both directions list exactly the same pairs."""
        listed: Dict[str, str] = {}
        for participant_id, item_ids in self.participant_assignments.items():
            for item_id in item_ids:
                if item_id in listed:
                    return False
                listed[item_id] = participant_id
        return listed == self.item_assignments

    @property
    def assigned_item_ids(self) -> List[str]:
        return list(self.item_assignments.keys())

    def items_for(self, participant_id: str) -> List[str]:
        return list(self.participant_assignments.get(participant_id, []))

    def participant_for(self, item_id: str) -> Optional[str]:
        return self.item_assignments.get(item_id)

    def to_payload(self) -> Dict[str, Any]:
        """Return a JSON-friendly snapshot of the assignment map."""
        return {
            "itemAssignments": dict(self.item_assignments),
            "participantAssignments": {
                participant_id: list(item_ids)
                for participant_id, item_ids in self.participant_assignments.items()
            },
            "createdAt": self.created_at,
            "distributionMode": self.distribution_mode.value,
            "totalItems": self.total_items,
            "totalParticipants": self.total_participants,
        }


class ValidationResult(BaseModel):
    valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    suggestions: Optional[List[str]] = None

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class DistributionResult(BaseModel):
    success: bool
    assignments: Optional[AssignmentMap] = None
    warnings: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
