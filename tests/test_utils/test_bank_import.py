"""
Tests for parsing the bank's SPK attachment export.
"""
from datetime import date

import pytest

from watukobu.utils.bank_import import (
    build_mapping,
    detect_delimiter,
    find_column,
    parse_amount,
    parse_bank_csv,
    parse_date,
)

SEMICOLON_EXPORT = """ACCTNO;NAMA DEBITUR;CABANG;ARCOLL;KELOLAAN;HP1;HP2;ALAMAT_AGUNAN;TOTAL_TGK;TGL_REALISASI
1001;Ahmad Wijaya;KCP Jakarta Selatan;DKI Jakarta;AKTIF;0812;0813;Jl. Merpati 15;Rp 5.000.000;15/01/2020
1002;Siti Rahayu;KCP Jakarta Selatan;DKI Jakarta;PASIF;0814;;-;3.600.000;2021-03-01
;;;;;;;;;
broken;line
"""


class TestColumnMatching:
    """Test cases for header alias resolution"""

    def test_first_header_containing_alias_wins(self):
        assert find_column(["ACCOUNT NAME", "ACC"], ["ACC"]) == "ACCOUNT NAME"
        assert find_column(["NAMA_DARURAT", "NAMA"], ["NAMA"]) == "NAMA_DARURAT"

    def test_alias_order_wins_over_header_order(self):
        headers = ["NO REKENING", "ACCTNO"]
        assert find_column(headers, ["ACCTNO", "NO REK"]) == "ACCTNO"

    def test_substring_match(self):
        assert find_column(["NO REKENING"], ["NO REK"]) == "NO REKENING"

    def test_case_insensitive(self):
        assert find_column(["acctno"], ["ACCTNO"]) == "acctno"

    def test_no_match(self):
        assert find_column(["FOO"], ["BAR"]) is None

    def test_mapping_covers_known_fields(self):
        mapping = build_mapping(["ACCTNO", "NAMA DEBITUR", "TOTAL_TGK"])

        assert mapping["loan_id"] == "ACCTNO"
        assert mapping["debtor_name"] == "NAMA DEBITUR"
        assert mapping["total_arrears"] == "TOTAL_TGK"
        assert mapping["collateral_address"] is None


class TestValueParsing:
    """Test cases for amounts, dates and delimiters"""

    @pytest.mark.parametrize("raw,expected", [
        ("Rp 1.250.000", 1_250_000.0),
        ("1,250,000", 1_250_000.0),
        ("", 0.0),
        (None, 0.0),
        ("n/a", 0.0),
    ])
    def test_parse_amount(self, raw, expected):
        assert parse_amount(raw) == expected

    @pytest.mark.parametrize("raw,expected", [
        ("2021-03-01", date(2021, 3, 1)),
        ("15/01/2020", date(2020, 1, 15)),
        ("20200115", date(2020, 1, 15)),
        ("", None),
        ("not a date", None),
    ])
    def test_parse_date(self, raw, expected):
        assert parse_date(raw) == expected

    def test_detect_delimiter(self):
        assert detect_delimiter("A;B;C") == ";"
        assert detect_delimiter("A,B,C") == ","


class TestParseBankCsv:
    """Test cases for whole-file parsing"""

    def test_parses_usable_rows(self):
        result = parse_bank_csv(SEMICOLON_EXPORT)

        assert result.original_row_count == 4
        assert len(result.rows) == 2

        first = result.rows[0]
        assert first["loan_id"] == "1001"
        assert first["debtor_name"] == "Ahmad Wijaya"
        assert first["branch"] == "KCP Jakarta Selatan"
        assert first["region"] == "DKI Jakarta"
        assert first["spk_status"] == "AKTIF"
        assert first["phone"] == "0812 / 0813"
        assert first["total_arrears"] == 5_000_000.0
        assert first["realization_date"] == date(2020, 1, 15)
        assert first["principal_arrears"] == 0.0

    def test_passive_and_single_phone(self):
        second = parse_bank_csv(SEMICOLON_EXPORT).rows[1]

        assert second["spk_status"] == "PASIF"
        assert second["phone"] == "0814"

    def test_comma_export_with_quoted_values(self):
        content = 'ACCTNO,NAMA,ALAMAT\n"2001","Budi, S.H.","Jl. A, No. 1"\n'
        rows = parse_bank_csv(content).rows

        assert rows[0]["debtor_name"] == "Budi, S.H."
        assert rows[0]["identity_address"] == "Jl. A, No. 1"

    def test_missing_name_column_defaults_to_unknown(self):
        rows = parse_bank_csv("ACCTNO,CABANG\n3001,KCP Bogor\n").rows
        assert rows[0]["debtor_name"] == "Unknown"

    def test_missing_identifying_columns(self):
        with pytest.raises(ValueError, match="NAMA atau ACCTNO"):
            parse_bank_csv("FOO,BAR\n1,2\n")

    def test_empty_content(self):
        result = parse_bank_csv("")
        assert result.rows == []
        assert result.original_row_count == 0
