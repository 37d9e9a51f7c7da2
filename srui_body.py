"""Request body decoding and encoding.

Action requests carry a flat JSON array of ``{name, type, value}`` items.
``name`` is a dotted path (``"Filter.0.Dates.From"``), ``type`` a tag
telling how to read ``value`` (always a string on the wire). The same rules
run in reverse when request builders smuggle extra values to the browser.

Decoding never raises: a malformed body leaves the target untouched and a
malformed value degrades to a default.
"""

from __future__ import annotations

import enum
import json
import logging
from dataclasses import asdict, dataclass
from datetime import date, datetime, time
from email.utils import parsedate_to_datetime
from typing import Any, Iterable, List, Mapping, MutableMapping, MutableSequence, Optional, Sequence

logger = logging.getLogger("srui.body")


@dataclass
class BodyItem:
    name: str
    type: str
    value: str

    @classmethod
    def from_json(cls, entry: Any) -> Optional["BodyItem"]:
        if not isinstance(entry, Mapping):
            return None
        name = entry.get("name")
        if not name:
            return None
        value = entry.get("value")
        return cls(str(name), str(entry.get("type") or ""), "" if value is None else str(value))

    def to_json(self) -> dict:
        return asdict(self)


class Kind(enum.Enum):
    """Decoded value kinds; wire tags collapse onto these."""

    STRING = "string"
    INT = "int"
    FLOAT = "float64"
    BOOL = "bool"
    TIME = "Time"
    DATE = "date"
    CLOCK = "time"


_TAGS = {
    "date": Kind.DATE,
    "time": Kind.CLOCK,
    "datetime-local": Kind.TIME,
    "Time": Kind.TIME,
    "float64": Kind.FLOAT,
    "bool": Kind.BOOL,
    "checkbox": Kind.BOOL,
    "int": Kind.INT,
    "int64": Kind.INT,
    "number": Kind.INT,
}


def kind_of(tag: str) -> Kind:
    return _TAGS.get(tag, Kind.STRING)


def parse_body(payload: bytes) -> Optional[List[BodyItem]]:
    """Parse a raw request body; anything but a JSON array gives ``None``."""

    if not payload:
        return None
    try:
        data = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        logger.debug("discarding malformed body (%d bytes)", len(payload))
        return None
    if not isinstance(data, list):
        return None
    items: List[BodyItem] = []
    for entry in data:
        item = BodyItem.from_json(entry)
        if item is not None:
            items.append(item)
    return items


def _parse_datetime(value: str) -> Any:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        pass
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return value


def coerce(value_type: str, value: str) -> Any:
    kind = kind_of(value_type)
    if kind is Kind.TIME:
        return _parse_datetime(value)
    if kind is Kind.DATE:
        try:
            return date.fromisoformat(value)
        except ValueError:
            return _parse_datetime(value)
    if kind is Kind.CLOCK:
        try:
            return time.fromisoformat(value)
        except ValueError:
            return value
    if kind is Kind.FLOAT:
        try:
            return float(value)
        except ValueError:
            return 0.0
    if kind is Kind.INT:
        try:
            return int(value, 10)
        except ValueError:
            pass
        try:
            return int(float(value))
        except (ValueError, OverflowError):
            return 0
    if kind is Kind.BOOL:
        # only the exact literal counts; "True" and "1" are false
        return value == "true"
    return value


def _index(part: str) -> Optional[int]:
    if part.isdigit():
        return int(part)
    return None


def _child(current: Any, part: str) -> Any:
    if isinstance(current, Mapping):
        return current.get(part)
    if isinstance(current, MutableSequence):
        idx = _index(part)
        if idx is not None and idx < len(current):
            return current[idx]
        return None
    return getattr(current, part, None)


def _assign(current: Any, part: str, value: Any) -> None:
    if isinstance(current, MutableMapping):
        current[part] = value
        return
    if isinstance(current, MutableSequence):
        idx = _index(part)
        if idx is None:
            raise KeyError(part)
        if idx < len(current):
            current[idx] = value
        elif idx == len(current):
            current.append(value)
        else:
            raise IndexError(part)
        return
    setattr(current, part, value)


def _is_container(value: Any) -> bool:
    if isinstance(value, (MutableMapping, MutableSequence)):
        return True
    return value is not None and hasattr(value, "__dict__") and not isinstance(value, type)


def set_path(obj: Any, path: str, value: Any) -> None:
    parts = [p for p in path.split(".") if p]
    if not parts:
        return
    current = obj
    for part in parts[:-1]:
        nested = _child(current, part)
        if not _is_container(nested):
            nested = {}
            _assign(current, part, nested)
        current = nested
    _assign(current, parts[-1], value)


def decode(items: Optional[Iterable[BodyItem]], output: Any) -> None:
    if not items:
        return
    for item in items:
        try:
            set_path(output, item.name, coerce(item.type, item.value))
        except (AttributeError, KeyError, IndexError, TypeError) as exc:
            logger.debug("skipping body item %r: %s", item.name, exc)


def type_of(value: Any) -> str:
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, float):
        return "float64"
    if isinstance(value, datetime):
        return "Time"
    if isinstance(value, date):
        return "date"
    if isinstance(value, time):
        return "time"
    return "string"


def value_to_string(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)


def encode_values(values: Sequence[Any]) -> List[BodyItem]:
    """Flatten mappings of extra values into dotted body items."""

    body: List[BodyItem] = []

    def push_value(prefix: str, value: Any) -> None:
        if isinstance(value, Mapping):
            for key, val in value.items():
                push_value(f"{prefix}.{key}", val)
            return
        if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
            for index, item in enumerate(value):
                push_value(f"{prefix}.{index}", item)
            return
        body.append(BodyItem(prefix, type_of(value), value_to_string(value)))

    for item in values:
        if isinstance(item, Mapping):
            for key, val in item.items():
                push_value(str(key), val)
    return body


def dumps(items: Sequence[BodyItem]) -> str:
    if not items:
        return "[]"
    return json.dumps([item.to_json() for item in items])
