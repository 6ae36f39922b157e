from __future__ import annotations

from pathlib import Path

import pytest

from survey_importer.services.normalizer import normalize_key
from survey_importer.services.validator import validate_headers
from survey_importer.tabular.reader import CsvReadError, parse_csv_text, read_csv_file


def test_parse_csv_text_headers_and_rows(sample_csv_text: str):
    parsed = parse_csv_text(sample_csv_text)
    assert parsed.headers == ["NPS", "Comment", "Date", "customer_id", "[Q1]", "[Q2]"]
    assert parsed.total_rows == 3
    first = parsed.rows[0]
    assert first["NPS"] == "10"
    assert first["Date"] == "07.01.2026 10:15"
    assert first["[Q2]"] == "[{Maybe},{Later}]"
    assert parsed.rows[1]["Date"] == ""


def test_parse_csv_text_keeps_values_as_strings():
    parsed = parse_csv_text("NPS,customer_id,flag\n07,00123,NA\n")
    assert parsed.rows == [{"NPS": "07", "customer_id": "00123", "flag": "NA"}]


def test_parse_csv_text_skips_blank_lines():
    text = "NPS,Comment\n\n9,a\n\n\n5,b\n,\n"
    parsed = parse_csv_text(text)
    assert [r["NPS"] for r in parsed.rows] == ["9", "5"]


def test_parse_csv_text_quoted_cells():
    text = 'NPS,Comment\n"8","Hello, ""world""\nsecond line"\n'
    parsed = parse_csv_text(text)
    assert parsed.rows[0]["Comment"] == 'Hello, "world"\nsecond line'


def test_parse_csv_text_header_whitespace_kept():
    parsed = parse_csv_text("NPS, Comment \n9,x\n")
    assert parsed.headers == ["NPS", " Comment "]
    assert parsed.rows[0] == {"NPS": "9", " Comment ": "x"}


def test_parse_csv_text_short_line_has_no_value_for_missing_cells():
    parsed = parse_csv_text("NPS,Comment,Date\n9\n")
    row = parsed.rows[0]
    assert row["NPS"] == "9"
    assert not row["Comment"]
    assert not row["Date"]


@pytest.mark.parametrize("text", ["", "   \n\n"])
def test_parse_csv_text_empty(text: str):
    parsed = parse_csv_text(text)
    assert parsed.headers == []
    assert parsed.rows == []


def test_parse_csv_text_header_only():
    parsed = parse_csv_text("NPS,Comment\n")
    assert parsed.headers == ["NPS", "Comment"]
    assert parsed.rows == []


def test_parse_csv_text_overlong_line_is_cut_to_header_width():
    parsed = parse_csv_text("NPS,Comment,Date\n10,Great, really,07.01.2026 10:15\n8,ok,\n")

    assert parsed.rows == [
        {"NPS": "10", "Comment": "Great", "Date": " really"},
        {"NPS": "8", "Comment": "ok", "Date": ""},
    ]
    assert parsed.warnings == [
        "Row 1: 4 cells but the header has 3; extra cells dropped (quote values that contain commas)"
    ]


def test_parse_csv_text_overlong_line_row_numbers_skip_blank_rows():
    parsed = parse_csv_text("NPS,Comment\n9,a\n,\n8,b,c,d\n")
    assert parsed.total_rows == 2
    assert parsed.rows[1] == {"NPS": "8", "Comment": "b"}
    assert len(parsed.warnings) == 1
    assert parsed.warnings[0].startswith("Row 2: 4 cells")


def test_parse_csv_text_well_formed_has_no_warnings(sample_csv_text: str):
    assert parse_csv_text(sample_csv_text).warnings == []


def test_read_csv_file(temp_workdir: Path, write_csv, sample_csv_text: str):
    path = write_csv(sample_csv_text)
    parsed = read_csv_file(path)
    assert parsed.total_rows == 3


def test_read_csv_file_with_bom(temp_workdir: Path):
    path = temp_workdir / "bom.csv"
    path.write_bytes("NPS,Comment\n9,x\n".encode("utf-8-sig"))
    parsed = read_csv_file(path)
    assert normalize_key(parsed.headers[0]) == "NPS"
    assert validate_headers(parsed.headers) is None


def test_read_csv_file_missing(temp_workdir: Path):
    with pytest.raises(CsvReadError, match="file not found"):
        read_csv_file(temp_workdir / "nope.csv")


def test_read_csv_file_not_utf8(temp_workdir: Path):
    path = temp_workdir / "latin1.csv"
    path.write_bytes("NPS,Comment\n9,Gr\xfc\xdfe\n".encode("latin-1"))
    with pytest.raises(CsvReadError):
        read_csv_file(path)
