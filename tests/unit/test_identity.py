"""
Unit tests for order identity extraction and raw order adaptation.
"""

import pytest

from fieldops.core.models import ApiFetchOrder, ManualEntryOrder, SpreadsheetOrder, adapt_raw_order, raw_payload
from fieldops.core.models.raw_order import detect_source
from fieldops.pipeline.identity import extract_key


@pytest.mark.unit
class TestExtractKey:
    """Tests for extract_key"""

    def test_data_order_no_beats_top_level(self):
        """data.orderNo has priority over orderNo"""
        assert extract_key({"data": {"orderNo": "A"}, "orderNo": "B"}) == "A"

    def test_top_level_order_no(self):
        assert extract_key({"orderNo": "WO-1"}) == "WO-1"

    def test_completion_details_order_no(self):
        assert extract_key({"completionDetails": {"orderNo": "C-9"}}) == "C-9"

    def test_extracted_order_no(self):
        assert extract_key({"extracted": {"orderNo": "S-3"}}) == "S-3"

    def test_numeric_key_is_stringified(self):
        assert extract_key({"extracted": {"orderNo": 1042}}) == "1042"

    def test_blank_value_falls_through(self):
        """An empty candidate does not stop the lookup"""
        assert extract_key({"data": {"orderNo": "  "}, "orderNo": "B"}) == "B"

    @pytest.mark.parametrize("value", [True, {"nested": "A"}, ["A"]])
    def test_non_scalar_value_falls_through(self, value):
        """A mapping, list or bool at data.orderNo yields to the next path"""
        assert extract_key({"data": {"orderNo": value}, "orderNo": "B"}) == "B"

    def test_key_is_stripped(self):
        assert extract_key({"orderNo": "  WO-7 "}) == "WO-7"

    @pytest.mark.parametrize(
        "raw",
        [
            {},
            {"notes": "no key"},
            {"orderNo": None},
            {"orderNo": ""},
            {"orderNo": {"nested": "x"}},
            {"orderNo": True},
            {"data": "not a mapping"},
            "not a mapping",
            None,
        ],
    )
    def test_unkeyable(self, raw):
        assert extract_key(raw) is None

    def test_adapted_model_uses_payload(self):
        order = adapt_raw_order({"orderNo": "WO-5"})
        assert extract_key(order) == "WO-5"


@pytest.mark.unit
class TestAdaptRawOrder:
    """Tests for raw order classification"""

    def test_api_shape(self, api_order):
        order = adapt_raw_order(api_order)
        assert isinstance(order, ApiFetchOrder)
        assert order.source == "api"
        assert order.order_no == "WO-1001"
        assert order.search_response["data"]["date"] == "2024-01-01"
        assert order.completion_details["data"]["status"] == "success"

    def test_spreadsheet_shape(self, spreadsheet_order):
        order = adapt_raw_order(spreadsheet_order)
        assert isinstance(order, SpreadsheetOrder)
        assert order.extracted["driver"] == "Ana Ruiz"

    def test_manual_shape(self, manual_order):
        order = adapt_raw_order(manual_order)
        assert isinstance(order, ManualEntryOrder)
        assert order.order_no == "WO-3001"

    def test_declared_source_wins(self):
        assert detect_source({"source": "manual", "extracted": {"orderNo": "X"}}) == "manual"

    def test_unknown_declared_source_is_detected(self):
        assert detect_source({"source": "fax", "searchResponse": {}}) == "api"

    def test_unkeyable_returns_none(self):
        assert adapt_raw_order({"notes": "nothing"}) is None

    def test_non_mapping_returns_none(self):
        assert adapt_raw_order(["WO-1"]) is None

    def test_payload_is_kept(self, manual_order):
        order = adapt_raw_order(manual_order)
        assert order.payload == manual_order
        assert raw_payload(order) == manual_order

    def test_adapted_model_passes_through(self, manual_order):
        order = adapt_raw_order(manual_order)
        assert adapt_raw_order(order) is order

    def test_raw_payload_rejects_other_types(self):
        with pytest.raises(TypeError):
            raw_payload(42)
