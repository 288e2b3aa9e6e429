"""Service layer for the playfield engine."""

from .distribution import DistributionEngine, distribute_items  # noqa: F401
from .participant_state import ParticipantStateManager  # noqa: F401
from .preview_engine import PreviewActivity, PreviewExecutionEngine, PreviewSlide  # noqa: F401
from .variable_resolver import (  # noqa: F401
    VariableContext,
    VariableResolver,
    resolve_variable,
    variable_resolver,
)

__all__ = [
    "DistributionEngine",
    "distribute_items",
    "ParticipantStateManager",
    "PreviewActivity",
    "PreviewExecutionEngine",
    "PreviewSlide",
    "VariableContext",
    "VariableResolver",
    "resolve_variable",
    "variable_resolver",
]
