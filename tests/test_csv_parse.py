"""Tokenizer and table parser."""

from pipeline.columns import NOT_FOUND, cell, find_column
from pipeline.csv_parse import parse_line, parse_table


def test_unquoted_lines_match_plain_split():
    for line in ["a,b,c", "1,,3", ",", "single", "x, y ,z", "trailing,"]:
        assert parse_line(line) == line.split(","), line


def test_quoted_field_keeps_commas():
    assert parse_line('"Smith, John",42') == ["Smith, John", "42"]


def test_doubled_quote_is_literal():
    assert parse_line('"She said ""hi""",1') == ['She said "hi"', "1"]


def test_empty_quoted_field():
    assert parse_line('"",x') == ["", "x"]


def test_empty_input_yields_one_empty_field():
    assert parse_line("") == [""]


def test_unterminated_quote_runs_to_end_of_line():
    assert parse_line('1,"open, never closed') == ["1", "open, never closed"]


def test_fields_are_not_trimmed_by_tokenizer():
    assert parse_line(" a , b ") == [" a ", " b "]


def test_table_lowercases_headers_and_trims_cells():
    table = parse_table(" ID , Name ,SectorId\r\n1, Joe , automotive \n\n   \n2,Ann,\n")
    assert table.headers == ["id", "name", "sectorid"]
    assert table.rows == [["1", "Joe", "automotive"], ["2", "Ann", ""]]
    assert len(table) == 2


def test_header_only_is_empty_table():
    table = parse_table("id,name,subcategory\n")
    assert table.rows == []
    assert table.headers == []


def test_blank_text_is_empty_table():
    assert len(parse_table("")) == 0
    assert len(parse_table("\n\r\n  \n")) == 0


def test_find_column_uses_first_alias_present():
    headers = ["name", "sector", "sector_id"]
    assert find_column(headers, "sectorid", "sector_id", "sector") == 2
    assert find_column(headers, "SECTOR") == 1
    assert find_column(headers, "tier") == NOT_FOUND


def test_table_index_delegates_to_resolver():
    table = parse_table("Business_Name,Phone\nAcme,123\n")
    assert table.index("name", "business_name") == 0
    assert table.index("email") == NOT_FOUND


def test_cell_tolerates_missing_columns_and_short_rows():
    row = ["a", "b"]
    assert cell(row, 1) == "b"
    assert cell(row, 5) == ""
    assert cell(row, NOT_FOUND) == ""
