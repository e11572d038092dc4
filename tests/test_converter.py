"""Tests for the conversion pipeline and free-tier gate."""

import json

import pytest

from json_tabular.converter import ConversionResult, FreeTierGate, OutputFormat, convert, count_lines
from json_tabular.flattener import InvalidJSONError


def _lines(n: int) -> str:
    """Build a JSON array spread over exactly ``n`` lines (n >= 3)."""
    items = ",\n".join(json.dumps({"id": i}) for i in range(n - 2))
    return "[\n" + items + "\n]"


def test_count_lines() -> None:
    """Test line counting on raw input."""
    assert count_lines("{}") == 1
    assert count_lines("{\n}") == 2
    assert count_lines("") == 1


class TestFreeTierGate:
    """Tests for the free-tier gate."""

    def test_under_line_limit(self) -> None:
        """Test inputs at the limit are free."""
        assert not FreeTierGate(max_lines=50).requires_payment(50, 1)

    def test_over_line_limit(self) -> None:
        """Test inputs over the limit require payment."""
        assert FreeTierGate(max_lines=50).requires_payment(51, 1)

    def test_paid_bypasses_limits(self) -> None:
        """Test paid callers are never gated."""
        assert not FreeTierGate(max_lines=1, max_records=1).requires_payment(100, 100, paid=True)

    def test_record_limit(self) -> None:
        """Test the optional record limit."""
        gate = FreeTierGate(max_lines=None, max_records=10)
        assert gate.requires_payment(1, 11)
        assert not gate.requires_payment(1000, 10)


def test_convert_sql() -> None:
    """Test SQL conversion reports counts and output."""
    result = convert('{"a": {"b": 1}}', "sql", table_name="things")
    assert isinstance(result, ConversionResult)
    assert result.nesting_level == 2
    assert result.record_count == 1
    assert result.line_count == 1
    assert not result.requires_payment
    assert 'CREATE TABLE "things"' in result.output
    assert '"a_b" BIGINT' in result.output


def test_convert_csv() -> None:
    """Test CSV conversion."""
    result = convert('{"company":"Acme","users":[{"id":1},{"id":2}]}', OutputFormat.CSV)
    assert result.output == "company,users_index,users_id\nAcme,0,1\nAcme,1,2"
    assert result.record_count == 2


def test_convert_default_table_name() -> None:
    """Test the default table name."""
    assert 'CREATE TABLE "converted_data"' in convert("[1, 2]", "sql").output


def test_convert_gated() -> None:
    """Test gated conversions return no output."""
    result = convert(_lines(60), "csv", gate=FreeTierGate())
    assert result.requires_payment
    assert result.output == ""
    assert result.line_count == 60
    assert result.record_count == 58


def test_convert_gated_but_paid() -> None:
    """Test paid conversions run even above the limit."""
    result = convert(_lines(60), "csv", gate=FreeTierGate(), paid=True)
    assert not result.requires_payment
    assert result.output.startswith("_index_level_0,id")


def test_convert_invalid_json() -> None:
    """Test malformed input raises InvalidJSONError."""
    with pytest.raises(InvalidJSONError):
        convert("{not json", "sql")


def test_convert_invalid_format() -> None:
    """Test unknown output formats raise ValueError."""
    with pytest.raises(ValueError, match="output_format"):
        convert("{}", "xml")
