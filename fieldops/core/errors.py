"""
Exceptions raised inside the pipeline.

Transport and store failures are raised here and converted into result
values at the async boundaries (submitter, fetcher).
"""


class TransportError(Exception):
    """Raised when a remote transport call fails or returns a non-2xx status."""

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None):
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class ImportInProgressError(RuntimeError):
    """Raised when an import is started while another one is still in flight."""


class WorkOrderNotFoundError(LookupError):
    """Raised when a status change targets an order number the store does not hold."""

    def __init__(self, order_no: str):
        self.order_no = order_no
        super().__init__(f"Work order not found: {order_no}")
