from __future__ import annotations

import json
import logging
import re
from typing import Any, List, Mapping, Optional

from playfield.config.loader import get_display_settings
from playfield.schemas.state import (
    ACCESSOR_LABELS,
    TRANSFORMER_LABELS,
    DataReference,
)
from playfield.services.variable_resolver import (
    Reference,
    VariableContext,
    VariableResolver,
    variable_resolver,
)

logger = logging.getLogger(__name__)

ERROR_MARKER = "[Error: Unable to resolve value]"

_PLACEHOLDER_PATTERN = re.compile(
    r"\{\{\s*([A-Za-z_][A-Za-z0-9_-]*(?:\.[A-Za-z0-9_-]+)*)\s*\}\}"
)


def error_marker(label: Optional[str] = None, reason: Optional[str] = None) -> str:
    if not label:
        return ERROR_MARKER
    if reason:
        return f"[Error: Unable to resolve '{label}' ({reason})]"
    return f"[Error: Unable to resolve '{label}']"


def is_empty_value(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (list, tuple, Mapping)):
        return len(value) == 0
    return False


def format_value(
    value: Any,
    *,
    bullet: Optional[str] = None,
    indent: Optional[int] = None,
    marker: str = ERROR_MARKER,
) -> str:
    """Render a resolved value as display text.

    Empty and missing values render as the error marker, sequences as one
    bullet line per entry, mappings as an indented JSON dump and scalars as
    their plain string form.
    """
    if bullet is None or indent is None:
        settings = get_display_settings()
        bullet = settings["bullet"] if bullet is None else bullet
        indent = settings["json_indent"] if indent is None else indent

    if is_empty_value(value):
        return marker
    if isinstance(value, (list, tuple)):
        lines: List[str] = []
        for entry in value:
            text = _format_entry(entry)
            if text is None:
                return marker
            lines.append(f"{bullet} {text}")
        return "\n".join(lines)
    if isinstance(value, Mapping):
        return _dump_json(value, indent=indent) or marker
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    logger.debug("Unformattable value of type %s", type(value).__name__)
    return marker


def _format_entry(entry: Any) -> Optional[str]:
    if isinstance(entry, Mapping):
        if "content" in entry:
            return _format_entry(entry["content"])
        return _dump_json(entry)
    content = getattr(entry, "content", None)
    if content is not None and not isinstance(entry, (str, bytes)):
        return _format_entry(content)
    if isinstance(entry, bool):
        return "true" if entry else "false"
    if entry is None:
        return ""
    if isinstance(entry, (str, int, float)):
        return str(entry)
    if isinstance(entry, (list, tuple)):
        return _dump_json(list(entry))
    return str(entry)


def _dump_json(value: Any, indent: Optional[int] = None) -> Optional[str]:
    try:
        return json.dumps(value, indent=indent, ensure_ascii=False, default=str)
    except (TypeError, ValueError) as exc:
        logger.debug("Failed to serialise value for display: %s", exc)
        return None


def _reference_label(reference: Reference) -> str:
    if isinstance(reference, str):
        return reference
    if isinstance(reference, DataReference):
        return reference.label
    try:
        return DataReference.model_validate(reference).label
    except ValueError:
        return str(reference)


def interpolate_variable(
    reference: Reference,
    context: VariableContext,
    resolver: Optional[VariableResolver] = None,
) -> str:
    """Resolve a reference and render it, naming the reference on failure."""
    resolver = resolver or variable_resolver
    resolution = resolver.resolve_detailed(reference, context)
    label = _reference_label(reference)
    if not resolution.found:
        return error_marker(label, "not found")
    if is_empty_value(resolution.value):
        return error_marker(label, "empty")
    return format_value(resolution.value, marker=error_marker(label))


def extract_variable_references(text: str) -> List[str]:
    """Return the distinct `{{name}}` placeholders in order of appearance."""
    if not text:
        return []
    found: List[str] = []
    for match in _PLACEHOLDER_PATTERN.finditer(text):
        name = match.group(1)
        if name not in found:
            found.append(name)
    return found


def interpolate_text(
    text: str,
    context: VariableContext,
    resolver: Optional[VariableResolver] = None,
) -> str:
    if not text:
        return ""
    resolver = resolver or variable_resolver
    return _PLACEHOLDER_PATTERN.sub(
        lambda match: interpolate_variable(match.group(1), context, resolver),
        text,
    )


def format_reference_display(reference: Reference, slide_title: str) -> str:
    if not isinstance(reference, DataReference):
        reference = DataReference.model_validate(reference)
    title = (slide_title or "").strip() or "Untitled Slide"
    accessor = ACCESSOR_LABELS.get(reference.accessor, reference.accessor.value)
    transformer = TRANSFORMER_LABELS.get(
        reference.transformer, reference.transformer.value
    )
    return f"{title} → {accessor} → {transformer}"
