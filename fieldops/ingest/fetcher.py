"""
Order fetching for a date range.
"""

from collections.abc import Mapping
from datetime import date, datetime

from fieldops.core.models import FetchResult
from fieldops.ingest.transports import OrderFetchTransport
from fieldops.observability.logger import get_logger
from fieldops.observability.metrics import errors_total, fetch_requests_total, increment_counter
from fieldops.pipeline.transform import transform
from fieldops.utils.validation import ValidationError, validate_date_range


logger = get_logger(__name__)


class OrderFetcher:
    """
    Fetches raw orders for a date range and transforms them into WorkOrders.

    ``fetch`` never raises: transport failures, malformed bodies and invalid
    ranges come back as a FetchResult with ``error`` set.
    """

    def __init__(self, transport: OrderFetchTransport, max_days: int = 31):
        self.transport = transport
        self.max_days = max_days

    async def fetch(self, start: date, end: date) -> FetchResult:
        try:
            start, end = validate_date_range(start, end, max_days=self.max_days)
        except ValidationError as e:
            logger.warning(f"Rejected fetch range: {e}")
            increment_counter(fetch_requests_total, outcome="failure")
            return FetchResult(start_date=_as_date(start), end_date=_as_date(end), error=str(e))

        logger.info(f"Fetching orders from {start} to {end}")

        try:
            body = await self.transport.fetch(start, end)
            if not isinstance(body, Mapping):
                raise TypeError(f"Malformed fetch response: expected an object, got {type(body).__name__}")

            raw_orders = body.get("orders") or []
            if not isinstance(raw_orders, list):
                raise TypeError("Malformed fetch response: 'orders' is not a list")
            raw_orders = [dict(order) for order in raw_orders if isinstance(order, Mapping)]
            orders = [transform(order) for order in raw_orders]
        except Exception as e:
            logger.error(f"Error fetching orders: {e}", extra={"error_type": type(e).__name__})
            increment_counter(errors_total, component="fetcher", error_type=type(e).__name__)
            increment_counter(fetch_requests_total, outcome="failure")
            return FetchResult(start_date=start, end_date=end, error=str(e) or type(e).__name__)

        warning = _provider_warning(body)
        if body.get("error") and not raw_orders:
            warning = warning or str(body["error"])

        total_count = body.get("totalCount")
        if not isinstance(total_count, int) or isinstance(total_count, bool):
            total_count = len(raw_orders)

        if warning:
            logger.warning(f"Order fetch returned a provider notice: {warning}")
            increment_counter(fetch_requests_total, outcome="warning")
        else:
            logger.info(f"Retrieved {total_count} orders")
            increment_counter(fetch_requests_total, outcome="success")

        return FetchResult(
            start_date=start,
            end_date=end,
            orders=orders,
            raw_orders=raw_orders,
            total_count=total_count,
            warning=warning,
        )


def _provider_warning(body: Mapping) -> str | None:
    """Describe a ``raw.success == false`` body from the routing provider."""
    raw = body.get("raw")
    if not isinstance(raw, Mapping) or raw.get("success") is not False:
        return None
    code = raw.get("code")
    if not code:
        return "API returned success:false without an error code"
    message = raw.get("message")
    return f"API returned: {code} - {message}" if message else f"API returned: {code}"


def _as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value if isinstance(value, date) else date.min
