from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Union

from playfield.schemas.state import DataTransformer

TransformerKind = Union[DataTransformer, str]


def normalize_transformer(kind: TransformerKind) -> DataTransformer:
    """Return the closed transformer value; legacy spellings are accepted."""
    if isinstance(kind, DataTransformer):
        return kind
    return DataTransformer(str(kind).strip())


def apply_transform(value: Any, kind: TransformerKind, caller_id: str) -> Any:
    """Apply one named view to a collection value.

    Sequences are filtered by each entry's author, keyed mappings by the
    `<callerId>-` key prefix. `count` returns the number of entries; a
    missing value counts as 0 and filters to an empty list, while `all`
    passes it through untouched.
    """
    transformer = normalize_transformer(kind)
    caller = str(caller_id or "")

    if value is None:
        if transformer is DataTransformer.ALL:
            return value
        if transformer is DataTransformer.COUNT:
            return 0
        return []

    if transformer is DataTransformer.ALL:
        return value
    if transformer is DataTransformer.COUNT:
        return count_entries(value)
    if transformer is DataTransformer.MINE:
        return _filter_entries(
            value,
            lambda entry: _author_of(entry) == caller,
            lambda key: _is_own_key(key, caller),
        )
    if transformer is DataTransformer.NOT_MINE:
        return _filter_entries(
            value,
            lambda entry: _author_of(entry) != caller,
            lambda key: not _is_own_key(key, caller),
        )
    raise ValueError(f"Unhandled transformer: {transformer!r}")


def count_entries(value: Any) -> int:
    if isinstance(value, Mapping):
        return len(value)
    if isinstance(value, (list, tuple)):
        return len(value)
    return 0


def _filter_entries(
    value: Any,
    entry_predicate: Callable[[Any], bool],
    key_predicate: Callable[[str], bool],
) -> Union[List[Any], Dict[str, Any]]:
    if isinstance(value, (list, tuple)):
        return [entry for entry in value if entry_predicate(entry)]
    if isinstance(value, Mapping):
        return {
            key: entry
            for key, entry in value.items()
            if key_predicate(str(key))
        }
    return []


def _author_of(entry: Any) -> Any:
    if isinstance(entry, Mapping):
        if "authorId" in entry:
            return entry.get("authorId")
        return entry.get("author_id")
    return getattr(entry, "author_id", None)


def _is_own_key(key: str, caller: str) -> bool:
    """`<caller>` or `<caller>-<suffix>`; `p1` does not own `p10-...`."""
    if not caller:
        return False
    return key == caller or key.startswith(f"{caller}-")
