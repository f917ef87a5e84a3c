"""
Import and fetch transports.

The pipeline talks to the outside world through two narrow, asynchronous
interfaces: an import transport that accepts ``{"orders": [...]}`` and
answers with import counts, and a fetch transport that returns raw orders
for a date range. HTTP implementations run blocking ``requests`` calls in
a worker thread so the event loop stays free.
"""

import asyncio
from abc import ABC, abstractmethod
from datetime import date
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from fieldops.core.errors import TransportError
from fieldops.core.models import WorkOrderStatus
from fieldops.observability.logger import get_logger
from fieldops.pipeline.identity import extract_key
from fieldops.pipeline.transform import transform


logger = get_logger(__name__)


class ImportTransport(ABC):
    """Accepts a batch of raw orders and reports how many were imported."""

    @abstractmethod
    async def send(self, payload: dict[str, Any]) -> dict[str, Any]:
        """
        Submit ``{"orders": [...]}``.

        Returns:
            ``{success, total, imported, duplicates, errors, errorDetails?}``

        Raises:
            TransportError: On network failure or a non-2xx response
        """


class OrderFetchTransport(ABC):
    """Returns raw route/order data for an inclusive date range."""

    @abstractmethod
    async def fetch(self, start: date, end: date) -> dict[str, Any]:
        """
        Returns:
            ``{orders: [...], totalCount?, raw?}``

        Raises:
            TransportError: On network failure or a non-2xx response
        """


def build_session(retries: int = 0, api_key: str | None = None) -> requests.Session:
    """
    Create a requests session.

    Args:
        retries: Retries for 502/503/504 responses; 0 mounts no retry policy
        api_key: Bearer token added to every request
    """
    session = requests.Session()
    session.headers.update({"Content-Type": "application/json", "Accept": "application/json"})
    if api_key:
        session.headers["Authorization"] = f"Bearer {api_key}"

    if retries > 0:
        policy = Retry(
            total=retries,
            backoff_factor=2.0,
            status_forcelist=[502, 503, 504],
            allowed_methods=["POST"],
        )
        session.mount("http://", HTTPAdapter(max_retries=policy))
        session.mount("https://", HTTPAdapter(max_retries=policy))

    return session


class _HttpTransport:
    def __init__(self, url: str, session: requests.Session, timeout: float = 60.0):
        if not url:
            raise ValueError("Transport URL must be set")
        self.url = url
        self.session = session
        self.timeout = timeout

    def _post(self, body: dict[str, Any]) -> Any:
        try:
            resp = self.session.post(self.url, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(f"Request to {self.url} failed: {e}") from e

        logger.debug(f"POST {self.url} -> {resp.status_code}")
        if not resp.ok:
            raise TransportError(
                f"{self.url} returned HTTP {resp.status_code}",
                status_code=resp.status_code,
                body=resp.text[:2000],
            )

        try:
            return resp.json()
        except ValueError as e:
            raise TransportError(f"{self.url} returned a non-JSON body", status_code=resp.status_code) from e

    def close(self) -> None:
        self.session.close()


class HttpImportTransport(_HttpTransport, ImportTransport):
    """Posts import batches to the hosted bulk-import function."""

    async def send(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await asyncio.to_thread(self._post, payload)


class HttpOrderFetchTransport(_HttpTransport, OrderFetchTransport):
    """Calls the hosted bulk order fetch function with ISO dates."""

    async def fetch(self, start: date, end: date) -> dict[str, Any]:
        body = {"startDate": start.isoformat(), "endDate": end.isoformat()}
        return await asyncio.to_thread(self._post, body)


class StoreImportTransport(ImportTransport):
    """
    In-process bulk import against the work-order store.

    Mirrors the hosted import function: an order whose number is already
    stored counts as a duplicate, anything else is transformed and inserted
    as ``pending_review``. A failure on one order is recorded and the rest
    of the batch continues.
    """

    def __init__(self, store):
        self.store = store

    async def send(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await asyncio.to_thread(self._import, payload)

    def _import(self, payload: dict[str, Any]) -> dict[str, Any]:
        orders = payload.get("orders") if isinstance(payload, dict) else None
        if not orders or not isinstance(orders, list):
            return {
                "success": False,
                "error": "No valid orders provided",
                "imported": 0,
                "duplicates": 0,
                "errors": 0,
            }

        logger.info(f"Processing {len(orders)} orders for import")
        results = {
            "success": False,
            "total": len(orders),
            "imported": 0,
            "duplicates": 0,
            "errors": 0,
            "errorDetails": [],
        }

        keys = [key for key in (extract_key(order) for order in orders) if key]
        existing = self.store.existing_order_numbers(keys) if keys else set()

        for order in orders:
            try:
                order_no = extract_key(order)
                if order_no is None:
                    raise ValueError("Order has no order number")
                if order_no in existing:
                    results["duplicates"] += 1
                    continue

                work_order = transform(order).model_copy(
                    update={"order_no": order_no, "status": WorkOrderStatus.PENDING_REVIEW.value}
                )
                self.store.insert_order(work_order)
                existing.add(order_no)
                results["imported"] += 1
            except Exception as e:
                logger.error(f"Error processing order: {e}")
                results["errors"] += 1
                results["errorDetails"].append(str(e))

        results["success"] = results["errors"] == 0
        logger.info(
            f"Import complete: {results['imported']} imported, "
            f"{results['duplicates']} duplicates, {results['errors']} errors"
        )
        return results
