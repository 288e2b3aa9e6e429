from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class StateAccessor(str, Enum):
    RESPONSES = "responses"
    ASSIGNMENTS = "assignments"
    ASSIGNMENT_RESPONSES = "assignmentResponses"


_LEGACY_TRANSFORMERS = {
    "currentUser": "mine",
    "excludeCurrentUser": "not-mine",
}


class DataTransformer(str, Enum):
    ALL = "all"
    MINE = "mine"
    COUNT = "count"
    NOT_MINE = "not-mine"

    @classmethod
    def _missing_(cls, value: object) -> Optional["DataTransformer"]:
        alias = _LEGACY_TRANSFORMERS.get(str(value))
        if alias is not None:
            return cls(alias)
        return None


ACCESSOR_LABELS = {
    StateAccessor.RESPONSES: "Responses",
    StateAccessor.ASSIGNMENTS: "Assignments",
    StateAccessor.ASSIGNMENT_RESPONSES: "Assignment Responses",
}

TRANSFORMER_LABELS = {
    DataTransformer.ALL: "All",
    DataTransformer.MINE: "Current User",
    DataTransformer.COUNT: "Count",
    DataTransformer.NOT_MINE: "Exclude Current User",
}


class DataReference(BaseModel):
    """Structured pointer to one accessor of one slide namespace."""

    model_config = ConfigDict(frozen=True)

    accessor: StateAccessor
    namespace_id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices(
            "namespace_id", "namespaceId", "slideId", "slide_id"
        ),
    )
    transformer: DataTransformer = DataTransformer.ALL
    display_string: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("display_string", "displayString"),
    )

    @field_validator("transformer", mode="before")
    @classmethod
    def _accept_legacy_transformer(cls, value: Any) -> Any:
        if isinstance(value, str):
            return _LEGACY_TRANSFORMERS.get(value, value)
        return value

    @property
    def label(self) -> str:
        if self.display_string:
            return self.display_string
        return f"{self.namespace_id}.{self.accessor.value}"


class SlideStateInfo(BaseModel):
    slide_id: str
    has_responses: bool = False
    has_assignments: bool = False
    has_assignment_responses: bool = False
    response_count: int = 0
    assignment_count: int = 0
    assignment_response_count: int = 0

    def to_payload(self) -> Dict[str, Any]:
        return {
            "slideId": self.slide_id,
            "hasResponses": self.has_responses,
            "hasAssignments": self.has_assignments,
            "hasAssignmentResponses": self.has_assignment_responses,
            "responseCount": self.response_count,
            "assignmentCount": self.assignment_count,
            "assignmentResponseCount": self.assignment_response_count,
        }


class ParticipantLocalState(BaseModel):
    """Preview-only state one mock participant accumulates on their own."""

    participant_id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("participant_id", "participantId"),
    )
    responses: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    custom_variables: Dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("custom_variables", "customVariables"),
    )
    assignments: Dict[str, List[str]] = Field(default_factory=dict)
