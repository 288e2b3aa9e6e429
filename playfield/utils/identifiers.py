import hashlib
from datetime import datetime, timezone

ITEM_ID_PREFIX = "item"
ITEM_ID_DIGEST_LENGTH = 16
SUBMISSION_DIGEST_LENGTH = 12

MOCK_PARTICIPANT_PREFIX = "preview-participant"


def now_ms() -> int:
    """Return the current UTC time as integer epoch milliseconds."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def _digest(*parts: str, length: int) -> str:
    hasher = hashlib.sha1()
    for part in parts:
        hasher.update(str(part).encode("utf-8"))
        hasher.update(b"\x1f")
    return hasher.hexdigest()[:length]


def synthesize_item_id(key: str) -> str:
    """
    Derive an item id from a per-submission key.
    The id depends on the key alone, never on its position in the mapping.
    """
    return f"{ITEM_ID_PREFIX}-{_digest(key, length=ITEM_ID_DIGEST_LENGTH)}"


def build_submission_key(participant_id: str, *scope: str) -> str:
    """
    Construct a `<participantId>-<digest>` key for one participant submission.
    The digest is lowercase hex, so the author stays recoverable by splitting
    on the last hyphen.
    """
    return f"{participant_id}-{_digest(*scope, length=SUBMISSION_DIGEST_LENGTH)}"


def split_submission_key(key: str) -> tuple:
    """Return `(author, suffix)` for a `<author>-<suffix>` key, or `(None, None)`."""
    if not isinstance(key, str):
        return None, None
    author, sep, suffix = key.rpartition("-")
    if not sep or not author or not suffix:
        return None, None
    return author, suffix


def mock_participant_id(index: int) -> str:
    return f"{MOCK_PARTICIPANT_PREFIX}-{index + 1}"
