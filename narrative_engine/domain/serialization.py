"""
History serialization.

Persisted blob (JSON):

    {"format": 1, "cursor": 2, "entries": [{"content_id": "...", "snapshot": {...}}]}

A bare list of entries (older saves) is accepted and resumes at the last
entry.

LIMITS:
Saved state is plain JSON. Values outside JSON (sets, tuples, dates,
enums, decimals) are written through StateEncoder and come back as their
JSON form: sets and tuples as lists, dates as ISO strings, enums as their
value, decimals as floats. Snapshots restored after load() carry those
plain types.
"""

import json
from collections.abc import Mapping
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Any, List, Optional, Tuple

from ..contracts.base import ErrorCode, UsageError
from ..contracts.events import HistoryEntry


HISTORY_FORMAT = 1


class StateEncoder(json.JSONEncoder):
    """
    JSON Encoder for story state values.

    RULES:
    1. Dates are ISO 8601 strings.
    2. Enums use their .value.
    3. Decimals become floats.
    4. Sets -> Lists (sorted for determinism); tuples are lists already.
    5. Read-only mappings (history snapshots) become plain objects.
    """

    def default(self, obj: Any) -> Any:
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, Decimal):
            return float(obj)
        if isinstance(obj, (set, frozenset)):
            return sorted(obj, key=repr)
        if isinstance(obj, Mapping):
            return dict(obj)
        if hasattr(obj, "to_dict"):
            return obj.to_dict()
        if hasattr(obj, "__dataclass_fields__"):
            from dataclasses import asdict
            return asdict(obj)

        return super().default(obj)


def encode_history(entries: List[HistoryEntry], cursor: int) -> str:
    return json.dumps(
        {
            "format": HISTORY_FORMAT,
            "cursor": cursor,
            "entries": [
                {"content_id": entry.content_id, "snapshot": entry.snapshot}
                for entry in entries
            ],
        },
        cls=StateEncoder,
        sort_keys=True,
    )


def decode_history(blob: str) -> Tuple[List[HistoryEntry], Optional[int]]:
    """
    Parse a persisted blob into (entries, cursor).

    cursor is None for legacy list blobs. Raises UsageError
    (MALFORMED_HISTORY) for anything that is not a history document.
    """
    try:
        document = json.loads(blob)
    except (TypeError, json.JSONDecodeError) as exc:
        raise _malformed(f"History blob is not valid JSON: {exc}") from exc

    cursor = None
    if isinstance(document, dict):
        if document.get("format") != HISTORY_FORMAT:
            raise _malformed(f"Unsupported history format {document.get('format')!r}")
        cursor = document.get("cursor")
        if not isinstance(cursor, int) or isinstance(cursor, bool):
            raise _malformed(f"History cursor must be an integer, got {cursor!r}")
        raw_entries = document.get("entries")
    else:
        raw_entries = document

    if not isinstance(raw_entries, list):
        raise _malformed("History entries must be a list")

    entries = []
    for index, raw in enumerate(raw_entries):
        if (
            not isinstance(raw, dict)
            or not isinstance(raw.get("content_id"), str)
            or not isinstance(raw.get("snapshot"), dict)
        ):
            raise _malformed(f"History entry {index} is malformed")
        entries.append(HistoryEntry(content_id=raw["content_id"], snapshot=raw["snapshot"]))

    return entries, cursor


def _malformed(message: str) -> UsageError:
    return UsageError.create(ErrorCode.MALFORMED_HISTORY, message)
