"""
Unit tests for status aggregation, filtering and pagination.
"""

from datetime import date, datetime

import pytest

from fieldops.core.models import Driver, Location, StatusCounts, WorkOrder
from fieldops.pipeline.filters import WorkOrderFilters, filter_orders, paginate, sort_orders
from fieldops.pipeline.status import aggregate, bucket_for, statuses_in_bucket
from fieldops.utils.validation import ValidationError


def make_order(order_no, status="pending_review", service_date=None, driver=None, location="N/A"):
    return WorkOrder(
        id=f"id-{order_no}",
        order_no=order_no,
        status=status,
        service_date=service_date,
        driver=Driver(name=driver) if driver else None,
        location=Location(name=location),
    )


@pytest.mark.unit
class TestAggregate:
    """Tests for aggregate"""

    def test_status_normalization(self):
        counts = aggregate([{"status": "imported"}, {"status": "flagged_followup"}, {"status": "approved"}])
        assert counts.to_dict() == {
            "approved": 1,
            "pending_review": 1,
            "flagged": 1,
            "resolved": 0,
            "rejected": 0,
            "all": 3,
        }

    def test_unknown_status_counts_only_in_all(self):
        counts = aggregate([{"status": "on_hold"}, {"status": None}, {}])
        assert counts == StatusCounts(all=3)

    def test_accepts_work_orders(self):
        orders = [make_order("A", "resolved"), make_order("B", "rejected"), make_order("C", "pending")]
        counts = aggregate(orders)
        assert (counts.resolved, counts.rejected, counts.pending_review, counts.all) == (1, 1, 1, 3)

    def test_empty(self):
        assert aggregate([]) == StatusCounts()

    def test_bucket_sum_never_exceeds_all(self):
        statuses = ["approved", "imported", "weird", "flagged", "resolved", "rejected", "pending_review"]
        counts = aggregate([{"status": s} for s in statuses])
        buckets = counts.to_dict()
        total = buckets.pop("all")
        assert sum(buckets.values()) == total - 1


@pytest.mark.unit
class TestBuckets:
    """Tests for status bucket lookups"""

    @pytest.mark.parametrize(
        "status,bucket",
        [
            ("imported", "pending_review"),
            ("pending", "pending_review"),
            ("flagged_followup", "flagged"),
            (" approved ", "approved"),
            ("on_hold", None),
            (None, None),
        ],
    )
    def test_bucket_for(self, status, bucket):
        assert bucket_for(status) == bucket

    def test_statuses_in_bucket(self):
        assert statuses_in_bucket("pending_review") == ["imported", "pending", "pending_review"]
        assert statuses_in_bucket("flagged") == ["flagged", "flagged_followup"]


@pytest.mark.unit
class TestFilters:
    """Tests for list view filtering, sorting and paging"""

    @pytest.fixture
    def orders(self):
        return [
            make_order("WO-1", "approved", datetime(2024, 1, 5), driver="Sam Lee", location="Main St Depot"),
            make_order("WO-2", "flagged_followup", datetime(2024, 1, 2), driver="Ana Ruiz", location="North Yard"),
            make_order("WO-3", "flagged", None, driver="Sam Lee", location="North Yard"),
            make_order("XY-4", "pending_review", datetime(2024, 1, 9)),
        ]

    def test_empty_filters_keep_everything(self, orders):
        filters = WorkOrderFilters()
        assert filters.is_empty
        assert filter_orders(orders, filters) == orders

    def test_flagged_includes_followup(self, orders):
        matched = filter_orders(orders, WorkOrderFilters(status="flagged"))
        assert [o.order_no for o in matched] == ["WO-2", "WO-3"]

    def test_exact_status(self, orders):
        matched = filter_orders(orders, WorkOrderFilters(status="flagged_followup"))
        assert [o.order_no for o in matched] == ["WO-2"]

    def test_text_filters_are_case_insensitive(self, orders):
        matched = filter_orders(orders, WorkOrderFilters(driver="sam", location="north"))
        assert [o.order_no for o in matched] == ["WO-3"]

    def test_order_no_substring(self, orders):
        assert [o.order_no for o in filter_orders(orders, WorkOrderFilters(order_no="xy"))] == ["XY-4"]

    def test_date_range_excludes_undated(self, orders):
        filters = WorkOrderFilters(date_from=date(2024, 1, 2), date_to=date(2024, 1, 5))
        assert [o.order_no for o in filter_orders(orders, filters)] == ["WO-1", "WO-2"]

    def test_sort_by_date_missing_last(self, orders):
        ascending = sort_orders(orders, "service_date")
        descending = sort_orders(orders, "service_date", descending=True)
        assert [o.order_no for o in ascending] == ["WO-2", "WO-1", "XY-4", "WO-3"]
        assert [o.order_no for o in descending] == ["XY-4", "WO-1", "WO-2", "WO-3"]

    def test_sort_by_driver(self, orders):
        assert [o.order_no for o in sort_orders(orders, "driver")] == ["XY-4", "WO-2", "WO-1", "WO-3"]

    def test_paginate(self, orders):
        assert [o.order_no for o in paginate(orders, page=2, page_size=3)] == ["XY-4"]
        assert paginate(orders, page=3, page_size=3) == []

    def test_paginate_rejects_bad_page(self, orders):
        with pytest.raises(ValidationError):
            paginate(orders, page=0)
