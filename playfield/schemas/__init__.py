from .distribution import (
    AssignmentMap,
    DistributionConfig,
    DistributionMode,
    DistributionResult,
    Item,
    MismatchHandling,
    Participant,
    ValidationResult,
)
from .state import (
    DataReference,
    DataTransformer,
    ParticipantLocalState,
    SlideStateInfo,
    StateAccessor,
)

__all__ = [
    "AssignmentMap",
    "DistributionConfig",
    "DistributionMode",
    "DistributionResult",
    "Item",
    "MismatchHandling",
    "Participant",
    "ValidationResult",
    "DataReference",
    "DataTransformer",
    "ParticipantLocalState",
    "SlideStateInfo",
    "StateAccessor",
]
