"""
Work-order store operations.

Writes are keyed by order number and use INSERT ... ON CONFLICT so
re-importing an order updates its provider data in place. Review status
and attribution columns only change through ``update_status``.
"""

import json
import uuid
from collections.abc import Iterable
from datetime import date, datetime, time, timezone
from typing import Any

import psycopg

from fieldops.core.errors import WorkOrderNotFoundError
from fieldops.core.models import KNOWN_STATUSES, StatusChange, StatusCounts, WorkOrder
from fieldops.observability.logger import get_logger
from fieldops.observability.metrics import increment_counter, store_writes_total
from fieldops.pipeline.status import BUCKETS, bucket_for
from fieldops.utils.validation import (
    validate_date_range,
    validate_order_no,
    validate_status,
)

from .connection import DatabaseConnectionPool


logger = get_logger(__name__)

# Columns written from a WorkOrder on insert/upsert.
DATA_COLUMNS = (
    "order_no",
    "status",
    "timestamp",
    "service_date",
    "end_time",
    "service_notes",
    "tech_notes",
    "notes",
    "qc_notes",
    "resolution_notes",
    "location",
    "driver",
    "location_name",
    "driver_name",
    "lds",
    "has_images",
    "signature_url",
    "tracking_url",
    "completion_status",
    "optimoroute_status",
    "search_response",
    "completion_response",
)

# Provider-sourced columns refreshed when an existing order is upserted.
REFRESH_COLUMNS = (
    "service_date",
    "end_time",
    "service_notes",
    "tech_notes",
    "location",
    "driver",
    "location_name",
    "driver_name",
    "lds",
    "has_images",
    "signature_url",
    "tracking_url",
    "completion_status",
    "optimoroute_status",
    "search_response",
    "completion_response",
)

JSON_COLUMNS = ("location", "driver", "search_response", "completion_response")

# Status -> attribution column prefix written by update_status.
ATTRIBUTION_PREFIX = {
    "approved": "approved",
    "flagged": "flagged",
    "flagged_followup": "flagged",
    "resolved": "resolved",
    "rejected": "rejected",
}


def _quote(column: str) -> str:
    return f'"{column}"'


def _insert_sql() -> str:
    columns = ("id",) + DATA_COLUMNS
    names = ", ".join(_quote(c) for c in columns)
    values = ", ".join(
        f"%({c})s::jsonb" if c in JSON_COLUMNS else f"%({c})s" for c in columns
    )
    return f"INSERT INTO work_orders ({names}) VALUES ({values})"


def _upsert_sql() -> str:
    updates = ",\n                ".join(f"{_quote(c)} = EXCLUDED.{_quote(c)}" for c in REFRESH_COLUMNS)
    return (
        f"{_insert_sql()}\n"
        f"            ON CONFLICT (order_no) DO UPDATE SET\n"
        f"                {updates},\n"
        f"                updated_at = NOW()"
    )


class WorkOrderStore:
    """
    Persistent store for canonical work orders.
    """

    def __init__(self, pool: DatabaseConnectionPool):
        """
        Args:
            pool: Open database connection pool
        """
        self.pool = pool

    def insert_order(self, order: WorkOrder) -> None:
        """
        Insert a new work order.

        Raises:
            psycopg.errors.UniqueViolation: If the order number already exists
        """
        try:
            self.pool.execute_command(_insert_sql(), self._params(order))
        except psycopg.DatabaseError as e:
            logger.error(f"Failed to insert work order {order.order_no}: {e}")
            raise
        increment_counter(store_writes_total, operation="insert")

    def upsert_batch(self, orders: list[WorkOrder]) -> int:
        """
        Insert or refresh a batch of work orders in one transaction.

        Returns:
            Number of orders written
        """
        if not orders:
            return 0

        try:
            with self.pool.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.executemany(_upsert_sql(), [self._params(order) for order in orders])
                conn.commit()
        except psycopg.DatabaseError as e:
            logger.error(f"Failed to upsert {len(orders)} work orders: {e}")
            raise

        increment_counter(store_writes_total, len(orders), operation="upsert")
        logger.info(f"Upserted {len(orders)} work orders")
        return len(orders)

    def existing_order_numbers(self, order_nos: Iterable[str | None]) -> set[str]:
        """
        Return the subset of ``order_nos`` already stored.

        None entries are ignored.
        """
        keys = list(dict.fromkeys(o.strip() for o in order_nos if o and o.strip()))
        if not keys:
            return set()

        rows = self.pool.execute_query(
            "SELECT order_no FROM work_orders WHERE order_no = ANY(%s)",
            (keys,),
        )
        return {row["order_no"] for row in rows}

    def get_order(self, order_no: str) -> WorkOrder | None:
        order_no = validate_order_no(order_no)
        rows = self.pool.execute_query("SELECT * FROM work_orders WHERE order_no = %s", (order_no,))
        return self._to_work_order(rows[0]) if rows else None

    def fetch_orders(self, start: date, end: date, limit: int = 5000) -> list[WorkOrder]:
        """
        Fetch orders whose resolved date falls in the inclusive range.

        Orders without a resolved date fall back to their timestamp.
        """
        start, end = validate_date_range(start, end)
        rows = self.pool.execute_query(
            """
            SELECT *
            FROM work_orders
            WHERE COALESCE(service_date, "timestamp") BETWEEN %s AND %s
            ORDER BY COALESCE(service_date, "timestamp") DESC NULLS LAST
            LIMIT %s
            """,
            (
                datetime.combine(start, time.min, tzinfo=timezone.utc),
                datetime.combine(end, time.max, tzinfo=timezone.utc),
                limit,
            ),
        )
        return [self._to_work_order(row) for row in rows]

    def count_by_status(self) -> StatusCounts:
        """Global status counts, bucketed like the in-memory aggregator."""
        rows = self.pool.execute_query(
            "SELECT status, COUNT(*) AS n FROM work_orders GROUP BY status"
        )
        counts = dict.fromkeys(BUCKETS, 0)
        total = 0
        for row in rows:
            total += row["n"]
            bucket = bucket_for(row["status"])
            if bucket is not None:
                counts[bucket] += row["n"]
        return StatusCounts(**counts, all=total)

    def update_status(
        self,
        order_no: str,
        new_status: str,
        user_id: str | None = None,
        username: str | None = None,
    ) -> StatusChange:
        """
        Change a work order's review status and record who did it.

        Approve, flag, resolve and reject write their own attribution
        columns; any other status writes the last-action columns. Every
        change is also recorded in the status_change audit table.

        Raises:
            ValidationError: If the order number or status is invalid
            WorkOrderNotFoundError: If no order has this number
        """
        order_no = validate_order_no(order_no)
        new_status = validate_status(new_status, KNOWN_STATUSES)
        change = StatusChange(
            order_no=order_no,
            new_status=new_status,
            changed_by=user_id,
            changed_user=username,
        )
        prefix = ATTRIBUTION_PREFIX.get(new_status, "last_action")

        try:
            with self.pool.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        "SELECT status FROM work_orders WHERE order_no = %s FOR UPDATE",
                        (order_no,),
                    )
                    row = cur.fetchone()
                    if row is None:
                        conn.rollback()
                        raise WorkOrderNotFoundError(order_no)
                    change.old_status = row["status"]

                    cur.execute(
                        f"""
                        UPDATE work_orders
                        SET status = %(status)s,
                            {prefix}_by = %(by)s,
                            {prefix}_user = %(user)s,
                            {prefix}_at = %(at)s,
                            updated_at = NOW()
                        WHERE order_no = %(order_no)s
                        """,
                        {
                            "status": new_status,
                            "by": user_id,
                            "user": username,
                            "at": change.changed_at,
                            "order_no": order_no,
                        },
                    )
                    cur.execute(
                        """
                        INSERT INTO status_change (
                            order_no, old_status, new_status, changed_by, changed_user, changed_at
                        ) VALUES (%s, %s, %s, %s, %s, %s)
                        RETURNING change_id
                        """,
                        (
                            order_no,
                            change.old_status,
                            new_status,
                            user_id,
                            username,
                            change.changed_at,
                        ),
                    )
                    change.change_id = cur.fetchone()["change_id"]
                conn.commit()
        except psycopg.DatabaseError as e:
            logger.error(f"Failed to update status of {order_no}: {e}")
            raise

        increment_counter(store_writes_total, operation="status_update")
        logger.info(f"Work order {order_no} status {change.old_status} -> {new_status}")
        return change

    def approve(self, order_no: str, user_id: str | None = None, username: str | None = None) -> StatusChange:
        return self.update_status(order_no, "approved", user_id, username)

    def flag(
        self,
        order_no: str,
        user_id: str | None = None,
        username: str | None = None,
        followup: bool = False,
    ) -> StatusChange:
        return self.update_status(order_no, "flagged_followup" if followup else "flagged", user_id, username)

    def resolve(self, order_no: str, user_id: str | None = None, username: str | None = None) -> StatusChange:
        return self.update_status(order_no, "resolved", user_id, username)

    def reject(self, order_no: str, user_id: str | None = None, username: str | None = None) -> StatusChange:
        return self.update_status(order_no, "rejected", user_id, username)

    def status_history(self, order_no: str) -> list[StatusChange]:
        order_no = validate_order_no(order_no)
        rows = self.pool.execute_query(
            "SELECT * FROM status_change WHERE order_no = %s ORDER BY changed_at, change_id",
            (order_no,),
        )
        return [StatusChange(**row) for row in rows]

    @staticmethod
    def _params(order: WorkOrder) -> dict[str, Any]:
        data = order.model_dump(mode="json")
        params: dict[str, Any] = {}
        for column in DATA_COLUMNS:
            if column in ("location_name", "driver_name"):
                continue
            value = getattr(order, column)
            if column in JSON_COLUMNS:
                params[column] = json.dumps(data[column]) if data[column] is not None else None
            else:
                params[column] = value
        params["location_name"] = order.location.name if order.location else None
        params["driver_name"] = order.driver.name if order.driver else None
        params["id"] = order.id if order.id and not order.id.startswith("temp-") else str(uuid.uuid4())
        return params

    @staticmethod
    def _to_work_order(row: dict[str, Any]) -> WorkOrder:
        fields = {name: row[name] for name in WorkOrder.model_fields if name in row}
        fields["id"] = str(row["id"])
        return WorkOrder.model_validate(fields)
