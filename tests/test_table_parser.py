"""
Tests for TableParser (src/ingestion/table_parser.py).
"""

import logging
from datetime import date

import pytest

from src.errors import ErrorKind, ParseError
from src.ingestion.table_parser import TableParser, infer_scalar


HEADER = "namespace,date,daily_incoming_txs,daily_active_users"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def parser():
    return TableParser()


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

def test_parse_typed_records(parser):
    text = f"{HEADER}\ndex,2024-01-01,500,10\nlending,2024-01-02,1200,4\n"
    records = parser.parse(text)

    assert len(records) == 2
    first = records[0]
    assert first.namespace == "dex"
    assert first.date == date(2024, 1, 1)
    assert first.daily_incoming_txs == 500
    assert first.daily_active_users == 10
    assert records[1].namespace == "lending"


def test_parse_preserves_row_order(parser):
    rows = [f"p{i},2024-01-0{i},{i},1" for i in range(1, 6)]
    records = parser.parse("\n".join([HEADER, *rows]))
    assert [r.namespace for r in records] == ["p1", "p2", "p3", "p4", "p5"]


def test_header_only_table_is_empty_not_error(parser):
    assert parser.parse(HEADER + "\n") == ()


def test_blank_and_all_empty_rows_skipped(parser):
    text = f"{HEADER}\ndex,2024-01-01,5,1\n\n,,,\n   \nnft,2024-01-01,3,1\n"
    records = parser.parse(text)
    assert [r.namespace for r in records] == ["dex", "nft"]


def test_invalid_counts_become_none(parser):
    text = (
        f"{HEADER}\n"
        "a,2024-01-01,-5,abc\n"
        "b,2024-01-01,12.5,\n"
        "c,2024-01-01,12.0,1e3\n"
        "d,2024-01-01, 7 ,true\n"
    )
    records = {r.namespace: r for r in parser.parse(text)}

    assert records["a"].daily_incoming_txs is None
    assert records["a"].daily_active_users is None
    assert records["b"].daily_incoming_txs is None
    assert records["b"].daily_active_users is None
    assert records["c"].daily_incoming_txs == 12
    assert records["c"].daily_active_users == 1000
    assert records["d"].daily_incoming_txs == 7
    assert records["d"].daily_active_users is None


def test_unparseable_date_becomes_none(parser):
    records = parser.parse(f"{HEADER}\ndex,not-a-date,5,1\n")
    assert records[0].date is None
    assert records[0].daily_incoming_txs == 5


def test_datetime_strings_truncate_to_day(parser):
    records = parser.parse(f"{HEADER}\ndex,2024-03-05 00:00:00.000,5,1\n")
    assert records[0].date == date(2024, 3, 5)


def test_short_row_fields_are_missing(parser):
    records = parser.parse(f"{HEADER}\ndex,2024-01-01\n")
    assert len(records) == 1
    assert records[0].daily_incoming_txs is None
    assert records[0].daily_active_users is None


def test_long_row_is_truncated(parser):
    records = parser.parse(f"{HEADER}\ndex,2024-01-01,5,1,surplus\n")
    assert len(records) == 1
    assert records[0].namespace == "dex"
    assert records[0].daily_active_users == 1


def test_malformed_rows_are_counted_in_warning(parser, caplog):
    text = (
        f"{HEADER}\n"
        "dex,2024-01-01,5,1,surplus\n"
        "nft,2024-01-01,3,1,x,y\n"
        "lending,2024-01-01\n"
        "amm,2024-01-01,2,1\n"
    )
    with caplog.at_level(logging.WARNING, logger="src.ingestion.table_parser"):
        records = parser.parse(text)

    assert len(records) == 4
    warnings = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]
    assert any("too_long=2" in m and "too_short=1" in m for m in warnings)


def test_well_formed_rows_log_no_shape_warning(parser, caplog):
    with caplog.at_level(logging.WARNING, logger="src.ingestion.table_parser"):
        parser.parse(f"{HEADER}\ndex,2024-01-01,5,1\n")
    assert not any("malformed rows" in r.getMessage() for r in caplog.records)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("9223372036854775807", 2**63 - 1),
        ("9223372036854775808", None),
        ("99999999999999999999", None),
        ("1e30", None),
        ("9.2e18", 9200000000000000000),
    ],
)
def test_counts_limited_to_int64_range(parser, raw, expected):
    records = parser.parse(f"{HEADER}\ndex,2024-01-01,{raw},1\n")
    assert records[0].daily_incoming_txs == expected


def test_offset_timestamp_keeps_written_day(parser):
    text = (
        f"{HEADER}\n"
        "dex,2024-01-01T23:00:00-05:00,5,1\n"
        "nft,2024-01-01,5,1\n"
        "amm,2024-01-02T01:30:00+09:00,5,1\n"
    )
    records = parser.parse(text)
    assert [r.date for r in records] == [
        date(2024, 1, 1),
        date(2024, 1, 1),
        date(2024, 1, 2),
    ]


def test_numeric_namespace_stays_string(parser):
    records = parser.parse(f"{HEADER}\n1329,2024-01-01,5,1\n")
    assert records[0].namespace == "1329"


def test_extra_columns_are_type_inferred(parser):
    text = (
        "namespace,date,daily_incoming_txs,daily_active_users,verified,chain_id,fee,label,note\n"
        "dex,2024-01-01,5,1,TRUE,1329,0.25,amm,\n"
    )
    extra = parser.parse(text)[0].extra
    assert extra["verified"] is True
    assert extra["chain_id"] == 1329
    assert extra["fee"] == pytest.approx(0.25)
    assert extra["label"] == "amm"
    assert extra["note"] is None


def test_custom_delimiter():
    text = HEADER.replace(",", ";") + "\ndex;2024-01-01;5;1\n"
    records = TableParser(delimiter=";").parse(text)
    assert records[0].daily_incoming_txs == 5


def test_records_are_immutable(parser):
    record = parser.parse(f"{HEADER}\ndex,2024-01-01,5,1\n")[0]
    with pytest.raises(AttributeError):
        record.namespace = "other"
    with pytest.raises(TypeError):
        record.extra["x"] = 1


@pytest.mark.parametrize("text", ["", "   \n\n"])
def test_no_header_raises(parser, text):
    with pytest.raises(ParseError) as excinfo:
        parser.parse(text)
    assert excinfo.value.kind is ErrorKind.PARSE


def test_missing_required_column_raises(parser):
    with pytest.raises(ParseError, match="missing required columns"):
        parser.parse("namespace,date\ndex,2024-01-01\n")


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("true", True),
        ("False", False),
        ("42", 42),
        ("-3", -3),
        ("1.5", 1.5),
        ("2e2", 200.0),
        ("1_000", "1_000"),
        ("dex", "dex"),
        ("", None),
        (None, None),
    ],
)
def test_infer_scalar(raw, expected):
    assert infer_scalar(raw) == expected
