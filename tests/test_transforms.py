"""Tests for record to payload transforms."""

import pytest

from csvload.transforms import DetailRecord, as_is, to_detail_record, wrap_chunk, wrap_record


class TestTransforms:
    """Test API payload envelopes."""

    def test_wrap_record(self):
        assert wrap_record({"clientId": "C1"}) == {"dataList": [{"data": {"clientId": "C1"}}]}

    def test_wrap_chunk(self):
        payload = wrap_chunk([{"id": "1"}, {"id": "2"}])
        assert payload == {"dataList": [{"data": {"id": "1"}}, {"data": {"id": "2"}}]}

    def test_as_is_copies(self):
        record = {"id": "1"}
        payload = as_is(record)
        assert payload == record
        assert payload is not record


class TestDetailRecord:
    """Test header reference resolution for detail rows."""

    def test_to_detail_record(self):
        detail = to_detail_record({"headerKey": " T1 ", "rate": "0.2"})

        assert detail.header_ref == "T1"
        assert detail.fields == {"headerKey": " T1 ", "rate": "0.2"}

    @pytest.mark.parametrize("record", [{"rate": "0.2"}, {"headerKey": ""}, {"headerKey": "   "}])
    def test_missing_reference(self, record):
        with pytest.raises(ValueError, match="headerKey"):
            to_detail_record(record)

    def test_custom_reference_field(self):
        detail = to_detail_record({"exchangeRateId": "E9"}, ref_field="exchangeRateId")
        assert detail.header_ref == "E9"

    def test_with_header_key(self):
        detail = DetailRecord(header_ref="T1", fields={"headerKey": "T1", "rate": "0.2"})

        assert detail.with_header_key("RK-1") == {"headerKey": "RK-1", "rate": "0.2"}
        assert detail.fields["headerKey"] == "T1"
