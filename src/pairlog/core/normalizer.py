"""
Record normalization.

Turns a raw JSON body into a canonical DatasetEntry:
- source_text: required string, trimmed, truncated to max_source_len
- translated_text: scalars stringified and truncated, "" otherwise
- timestamp: string passed through, current UTC time otherwise
- language / model: string passed through, "" otherwise

Only a missing or blank source_text rejects the record. Unpaired UTF-16
surrogates (valid in JSON escapes, not encodable as UTF-8) become U+FFFD.
"""

import re
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from ..models.dataset_entry import DatasetEntry
from .exceptions import ValidationError

DEFAULT_TRANSLATED_LEN = 2000
UNKNOWN_MODEL = "unknown"

# json.loads joins valid surrogate pairs, so any surrogate left is unpaired
_LONE_SURROGATE = re.compile("[\ud800-\udfff]")


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _clean(value: str) -> str:
    return _LONE_SURROGATE.sub("\ufffd", value)


def _optional_str(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return _clean(value)


def _translated_text(value: Any, max_len: int) -> str:
    if isinstance(value, bool):
        value = "true" if value else "false"
    elif isinstance(value, float) and value.is_integer():
        value = str(int(value))
    elif isinstance(value, (int, float)):
        value = str(value)
    elif not isinstance(value, str):
        return ""
    return _clean(value)[:max_len]


def normalize_record(
    raw: Any,
    max_source_len: int,
    max_translated_len: int = DEFAULT_TRANSLATED_LEN,
    now: Optional[str] = None,
) -> DatasetEntry:
    """
    Validate and canonicalize a raw record.

    Raises ValidationError("Invalid source_text") when the body is not an
    object or source_text is missing, not a string, or blank after trimming.
    """
    if not isinstance(raw, dict):
        raise ValidationError("Invalid source_text", field="source_text")

    source_text = raw.get("source_text")
    if not isinstance(source_text, str) or not source_text.strip():
        raise ValidationError("Invalid source_text", field="source_text")
    source_text = _clean(source_text.strip())[:max_source_len]

    timestamp = _optional_str(raw.get("timestamp")) or now or utc_now_iso()

    try:
        return DatasetEntry(
            source_text=source_text,
            translated_text=_translated_text(raw.get("translated_text"), max_translated_len),
            timestamp=timestamp,
            language=_optional_str(raw.get("language")),
            model=_optional_str(raw.get("model")),
        )
    except PydanticValidationError as e:
        raise ValidationError("Invalid source_text", field="source_text") from e


def dedup_key(entry: DatasetEntry) -> str:
    """Key identifying a record for duplicate suppression: model plus source text."""
    return f"{entry.model or UNKNOWN_MODEL}::{entry.source_text}"
