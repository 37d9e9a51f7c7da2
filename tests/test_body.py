"""Tests for srui_body: body parsing, coercion and dotted-path decoding."""

import json
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Dict, List

import pytest

from srui_body import (
    BodyItem,
    Kind,
    coerce,
    decode,
    dumps,
    encode_values,
    kind_of,
    parse_body,
    set_path,
    type_of,
    value_to_string,
)


def items(*triples) -> List[BodyItem]:
    return [BodyItem(name, kind, value) for name, kind, value in triples]


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


class TestParseBody:
    def test_json_array(self) -> None:
        payload = json.dumps([{"name": "id", "type": "string", "value": "c1"}]).encode()
        assert parse_body(payload) == [BodyItem("id", "string", "c1")]

    def test_empty_payload(self) -> None:
        assert parse_body(b"") is None

    @pytest.mark.parametrize("payload", [b"{not json", b'{"name": "x"}', b"\xff\xfe", b'"text"'])
    def test_malformed_payload_gives_none(self, payload: bytes) -> None:
        assert parse_body(payload) is None

    def test_entries_without_name_are_dropped(self) -> None:
        payload = json.dumps([{"type": "int", "value": "1"}, 7, {"name": "a", "value": 2}]).encode()
        assert parse_body(payload) == [BodyItem("a", "", "2")]


# ---------------------------------------------------------------------------
# Coercion
# ---------------------------------------------------------------------------


class TestCoerce:
    def test_kind_of_tags(self) -> None:
        assert kind_of("checkbox") is Kind.BOOL
        assert kind_of("number") is Kind.INT
        assert kind_of("int64") is Kind.INT
        assert kind_of("float64") is Kind.FLOAT
        assert kind_of("datetime-local") is Kind.TIME
        assert kind_of("text") is Kind.STRING
        assert kind_of("") is Kind.STRING

    def test_bool_requires_exact_literal(self) -> None:
        assert coerce("bool", "true") is True
        assert coerce("bool", "True") is False
        assert coerce("bool", "1") is False
        assert coerce("checkbox", "false") is False

    def test_int(self) -> None:
        assert coerce("int", "42") == 42
        assert coerce("int", "-3") == -3
        assert coerce("number", "12.7") == 12
        assert coerce("int", "abc") == 0
        assert coerce("int", "") == 0

    def test_float(self) -> None:
        assert coerce("float64", "2.5") == 2.5
        assert coerce("float64", "nope") == 0.0

    def test_datetime(self) -> None:
        assert coerce("Time", "2024-05-01T10:30:00") == datetime(2024, 5, 1, 10, 30)
        assert coerce("datetime-local", "2024-05-01T10:30") == datetime(2024, 5, 1, 10, 30)

    def test_date_and_clock(self) -> None:
        assert coerce("date", "2024-05-01") == date(2024, 5, 1)
        assert coerce("time", "10:30") == time(10, 30)

    def test_unparseable_dates_stay_strings(self) -> None:
        assert coerce("Time", "someday") == "someday"
        assert coerce("time", "later") == "later"

    def test_string_passthrough(self) -> None:
        assert coerce("string", "007") == "007"
        assert coerce("whatever", "x") == "x"


# ---------------------------------------------------------------------------
# Dotted paths
# ---------------------------------------------------------------------------


@dataclass
class Dates:
    From: Any = None
    To: Any = None


@dataclass
class Filter:
    Dates: Dates = field(default_factory=Dates)


@dataclass
class Query:
    Search: str = ""
    Page: int = 0
    Filter: List[Filter] = field(default_factory=list)


class TestSetPath:
    def test_nested_into_empty_mapping(self) -> None:
        target: Dict[str, Any] = {}
        set_path(target, "Filter.0.Dates.From", 1)

        assert target == {"Filter": {"0": {"Dates": {"From": 1}}}}

    def test_list_index(self) -> None:
        target: Dict[str, Any] = {"Filter": []}
        set_path(target, "Filter.0.Dates.From", 1)

        assert target["Filter"][0] == {"Dates": {"From": 1}}

    def test_existing_object_attributes(self) -> None:
        query = Query(Filter=[Filter()])
        set_path(query, "Filter.0.Dates.To", "x")

        assert query.Filter[0].Dates.To == "x"

    def test_overwrites_scalar_with_container(self) -> None:
        target: Dict[str, Any] = {"a": 5}
        set_path(target, "a.b", 1)

        assert target == {"a": {"b": 1}}


class TestDecode:
    def test_dotted_time_value(self) -> None:
        target: Dict[str, Any] = {"Filter": []}
        decode(items(("Filter.0.Dates.From", "Time", "2024-01-02T03:04:05")), target)

        assert target["Filter"][0]["Dates"]["From"] == datetime(2024, 1, 2, 3, 4, 5)

    def test_into_dataclass(self) -> None:
        query = Query()
        decode(items(("Search", "string", "abc"), ("Page", "int", "4")), query)

        assert query.Search == "abc"
        assert query.Page == 4

    def test_none_and_empty_leave_target_untouched(self) -> None:
        target = {"a": 1}
        decode(None, target)
        decode([], target)

        assert target == {"a": 1}

    def test_never_raises_on_mismatch(self) -> None:
        target: Dict[str, Any] = {"List": [], "Frozen": (1, 2)}
        decode(
            items(
                ("List.x", "int", "1"),
                ("List.5", "int", "1"),
                ("Frozen.0.a", "int", "1"),
                ("...", "int", "1"),
                ("ok", "int", "9"),
            ),
            target,
        )

        assert target["ok"] == 9
        assert target["List"] == []

    def test_fresh_targets_do_not_share_state(self) -> None:
        body = items(("Count", "int", "3"))
        first: Dict[str, Any] = {"Count": 0}
        second: Dict[str, Any] = {"Count": 0}
        decode(body, first)

        assert first["Count"] == 3
        assert second["Count"] == 0


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


class TestEncode:
    def test_type_of(self) -> None:
        assert type_of(True) == "bool"
        assert type_of(3) == "int"
        assert type_of(3.0) == "float64"
        assert type_of(datetime(2024, 1, 1)) == "Time"
        assert type_of(date(2024, 1, 1)) == "date"
        assert type_of("x") == "string"

    def test_value_to_string(self) -> None:
        assert value_to_string(False) == "false"
        assert value_to_string(3.0) == "3.0"
        assert value_to_string(None) == ""
        assert value_to_string(date(2024, 1, 2)) == "2024-01-02"

    def test_flattens_nested_mappings(self) -> None:
        body = encode_values([{"Count": 3, "Filter": {"Name": "a", "Tags": ["x", "y"]}}])

        assert body == [
            BodyItem("Count", "int", "3"),
            BodyItem("Filter.Name", "string", "a"),
            BodyItem("Filter.Tags.0", "string", "x"),
            BodyItem("Filter.Tags.1", "string", "y"),
        ]

    def test_non_mappings_ignored(self) -> None:
        assert encode_values([None, 3, "x"]) == []

    def test_dumps(self) -> None:
        assert dumps([]) == "[]"
        assert json.loads(dumps([BodyItem("a", "int", "1")])) == [{"name": "a", "type": "int", "value": "1"}]

    def test_encoded_values_decode_back(self) -> None:
        original = {
            "Name": "Ada",
            "Count": 7,
            "Ratio": 3.0,
            "Active": True,
            "Off": False,
            "Day": date(2024, 2, 29),
            "At": datetime(2024, 2, 29, 12, 0, 1),
        }
        decoded: Dict[str, Any] = {}
        decode(encode_values([original]), decoded)

        assert decoded == original
