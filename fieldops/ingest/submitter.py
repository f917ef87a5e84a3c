"""
Bulk import submission.
"""

import time
from collections.abc import Sequence
from typing import Any

from fieldops.core.models import ImportResult, raw_payload
from fieldops.ingest.transports import ImportTransport
from fieldops.observability.logger import get_logger
from fieldops.observability.metrics import errors_total, increment_counter, record_import_result


logger = get_logger(__name__)


class BulkImportSubmitter:
    """
    Submits one batch of raw orders to an import transport.

    Exactly one transport call per ``submit``; no chunking and no retries.
    Every failure is returned as an ImportResult, never raised.
    """

    def __init__(self, transport: ImportTransport):
        """
        Args:
            transport: Import transport to submit to
        """
        self.transport = transport

    async def submit(self, orders: Sequence[Any] | None) -> ImportResult | None:
        """
        Submit a batch of raw orders.

        Args:
            orders: Raw order mappings or adapted raw order models

        Returns:
            None when there is nothing to import (no transport call is made),
            otherwise the transport's ImportResult. A network error, non-2xx
            response or malformed body yields ``success=False, imported=0,
            errors=1`` with the failure message as the single error detail.
        """
        if not orders:
            logger.info("No orders to import")
            return None

        submitted = len(orders)
        started = time.monotonic()

        try:
            payload = {"orders": [raw_payload(order) for order in orders]}
            logger.info(f"Importing {submitted} orders")
            response = await self.transport.send(payload)
            result = ImportResult.from_response(response, submitted=submitted)
        except Exception as e:
            logger.error(f"Error importing orders: {e}", extra={"error_type": type(e).__name__})
            increment_counter(errors_total, component="submitter", error_type=type(e).__name__)
            record_import_result(
                "transport_error", submitted, 0, 0, 1, time.monotonic() - started
            )
            return ImportResult.transport_failure(submitted, str(e) or type(e).__name__)

        record_import_result(
            result.outcome,
            submitted,
            result.imported,
            result.duplicates,
            result.errors,
            time.monotonic() - started,
        )

        if result.is_partial:
            logger.warning(
                f"Imported {result.imported} orders with {result.errors} errors "
                f"({result.duplicates} duplicates skipped)"
            )
        elif result.success:
            logger.info(
                f"Imported {result.imported} orders ({result.duplicates} duplicates skipped)"
            )
        else:
            logger.error(
                f"Import failed with {result.errors} errors ({result.duplicates} duplicates skipped)"
            )

        return result
