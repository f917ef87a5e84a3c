"""
Unit tests for the order fetcher and user-facing notifications.
"""

import asyncio
from datetime import date, datetime

import pytest

from fieldops.core.errors import TransportError
from fieldops.core.models import DedupStats, FetchResult, ImportResult, ImportSummary
from fieldops.ingest.fetcher import OrderFetcher
from fieldops.ingest.notifications import describe_fetch, describe_import
from fieldops.ingest.transports import OrderFetchTransport


class StaticFetchTransport(OrderFetchTransport):
    def __init__(self, body=None, error=None):
        self.body = body
        self.error = error
        self.calls = []

    async def fetch(self, start, end):
        self.calls.append((start, end))
        if self.error is not None:
            raise self.error
        return self.body


def run_fetch(transport, start=date(2024, 1, 1), end=date(2024, 1, 7), **kwargs):
    return asyncio.run(OrderFetcher(transport, **kwargs).fetch(start, end))


@pytest.mark.unit
class TestOrderFetcher:
    """Tests for OrderFetcher"""

    def test_transforms_orders(self, api_order):
        transport = StaticFetchTransport(body={"orders": [api_order], "totalCount": 1})

        result = run_fetch(transport)

        assert result.ok
        assert result.total_count == 1
        assert result.orders[0].order_no == "WO-1001"
        assert result.raw_orders == [api_order]
        assert transport.calls == [(date(2024, 1, 1), date(2024, 1, 7))]

    def test_total_count_falls_back_to_length(self, api_order, manual_order):
        result = run_fetch(StaticFetchTransport(body={"orders": [api_order, manual_order]}))
        assert result.total_count == 2

    def test_datetimes_are_reduced_to_dates(self):
        transport = StaticFetchTransport(body={"orders": []})
        run_fetch(transport, start=datetime(2024, 1, 1, 9), end=datetime(2024, 1, 2, 17))
        assert transport.calls == [(date(2024, 1, 1), date(2024, 1, 2))]

    def test_missing_bound_is_an_error_without_a_call(self):
        transport = StaticFetchTransport(body={"orders": []})

        result = run_fetch(transport, end=None)

        assert result.error == "Please select both start and end dates"
        assert transport.calls == []

    def test_range_too_long(self):
        transport = StaticFetchTransport(body={"orders": []})
        result = run_fetch(transport, end=date(2024, 3, 1), max_days=31)
        assert not result.ok
        assert transport.calls == []

    def test_transport_error(self):
        result = run_fetch(StaticFetchTransport(error=TransportError("HTTP 503")))
        assert result.error == "HTTP 503"
        assert result.orders == []

    def test_malformed_body(self):
        result = run_fetch(StaticFetchTransport(body={"orders": "nope"}))
        assert "not a list" in result.error

    def test_provider_success_false(self):
        body = {"orders": [], "raw": {"success": False, "code": "ERR_DATE", "message": "Bad date"}}
        result = run_fetch(StaticFetchTransport(body=body))
        assert result.ok
        assert result.warning == "API returned: ERR_DATE - Bad date"

    def test_provider_success_false_without_code(self):
        result = run_fetch(StaticFetchTransport(body={"orders": [], "raw": {"success": False}}))
        assert result.warning == "API returned success:false without an error code"


@pytest.mark.unit
class TestNotifications:
    """Tests for describe_import and describe_fetch"""

    def test_nothing_to_import(self):
        notice = describe_import(None)
        assert (notice.level, notice.message) == ("error", "No orders to import")

    def test_success(self):
        result = ImportResult(success=True, total=5, imported=4, duplicates=1, errors=0)
        notice = describe_import(result)
        assert notice.level == "success"
        assert notice.message == "Successfully imported 4 orders (1 duplicates skipped)"

    def test_partial(self):
        result = ImportResult(success=False, total=5, imported=3, duplicates=1, errors=1)
        notice = describe_import(result)
        assert notice.level == "warning"
        assert notice.message == "Imported 3 orders with 1 errors (1 duplicates skipped)"

    def test_transport_failure(self):
        notice = describe_import(ImportResult.transport_failure(3, "timeout"))
        assert (notice.level, notice.message) == ("error", "Error importing orders: timeout")

    def test_total_failure(self):
        result = ImportResult(success=False, total=3, imported=0, duplicates=1, errors=2)
        assert describe_import(result).message == "Import failed with 2 errors (1 duplicates skipped)"

    def test_summary(self):
        summary = ImportSummary(
            dedup=DedupStats(original_count=2, unique_count=2),
            batches=[ImportResult(success=True, total=2, imported=2, duplicates=0, errors=0)],
        )
        assert describe_import(summary).message == "Successfully imported 2 orders (0 duplicates skipped)"

    def test_empty_summary(self):
        assert describe_import(ImportSummary(dedup=DedupStats())).message == "No orders to import"

    def test_summary_with_every_order_already_stored(self):
        summary = ImportSummary(dedup=DedupStats(original_count=2, unique_count=2), skipped_existing=2)
        notice = describe_import(summary)
        assert notice.level == "success"
        assert notice.message == "Successfully imported 0 orders (2 duplicates skipped)"

    def test_fetch_messages(self):
        ok = FetchResult(start_date=date(2024, 1, 1), end_date=date(2024, 1, 1), total_count=3)
        failed = FetchResult(start_date=date(2024, 1, 1), end_date=date(2024, 1, 1), error="HTTP 500")
        warned = FetchResult(start_date=date(2024, 1, 1), end_date=date(2024, 1, 1), warning="API returned: X")

        assert describe_fetch(ok).message == "Retrieved 3 orders"
        assert describe_fetch(failed).message == "Error: HTTP 500"
        assert describe_fetch(warned).level == "warning"
