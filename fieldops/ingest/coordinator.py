"""
Import coordination: dedupe, batch and submit raw orders.

The coordinator is the caller the submitter expects. It owns the
in-flight guard, splits work into batches and submits them one after
another, and hands out request tokens so a presentation layer can drop
results that arrive after the user has moved on.
"""

import asyncio
import itertools
from collections.abc import Sequence
from typing import Any

from fieldops.core.errors import ImportInProgressError
from fieldops.core.models import ImportSummary
from fieldops.ingest.submitter import BulkImportSubmitter
from fieldops.observability.logger import get_logger, log_operation
from fieldops.observability.metrics import errors_total, increment_counter
from fieldops.pipeline.dedupe import dedupe
from fieldops.pipeline.identity import extract_key
from fieldops.utils.validation import validate_batch_size


logger = get_logger(__name__)


def split_batches(orders: Sequence[Any], batch_size: int) -> list[list[Any]]:
    """
    Split orders into consecutive batches of at most batch_size.

    Examples:
        >>> split_batches([1, 2, 3, 4, 5], 2)
        [[1, 2], [3, 4], [5]]
    """
    validate_batch_size(batch_size)
    return [list(orders[i:i + batch_size]) for i in range(0, len(orders), batch_size)]


class ImportCoordinator:
    """
    Runs a full import: dedupe, optional store pre-check, batched submission.
    """

    def __init__(
        self,
        submitter: BulkImportSubmitter,
        batch_size: int = 50,
        store=None,
    ):
        """
        Args:
            submitter: Submitter for individual batches
            batch_size: Orders per submission
            store: Optional work-order store; when given, orders whose number
                is already stored are skipped before submission
        """
        self.submitter = submitter
        self.batch_size = validate_batch_size(batch_size)
        self.store = store
        self._in_flight = False
        self._tokens = itertools.count(1)
        self._current_token = 0

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def begin_request(self) -> int:
        """Issue a new request token, making all earlier tokens stale."""
        self._current_token = next(self._tokens)
        return self._current_token

    def is_current(self, token: int) -> bool:
        return token == self._current_token

    async def import_orders(self, orders: Sequence[Any] | None) -> ImportSummary:
        """
        Deduplicate and submit raw orders in batches.

        Batches are submitted sequentially; a failed batch does not stop
        later ones.

        Raises:
            ImportInProgressError: If another import on this coordinator has
                not finished
        """
        if self._in_flight:
            raise ImportInProgressError("An import is already in progress")

        self._in_flight = True
        try:
            dedup_result = dedupe(orders)
            pending = dedup_result.unique_orders
            skipped = 0

            if self.store is not None and pending:
                existing = await self._existing_keys(pending)
                remaining = [o for o in pending if extract_key(o) not in existing]
                skipped = len(pending) - len(remaining)
                pending = remaining
                if skipped:
                    logger.info(f"Skipping {skipped} orders already in the store")

            summary = ImportSummary(dedup=dedup_result.stats, skipped_existing=skipped)
            batches = split_batches(pending, self.batch_size)

            with log_operation("Bulk import", logger=logger, orders=len(pending), batches=len(batches)):
                for index, batch in enumerate(batches, start=1):
                    logger.info(f"Submitting batch {index}/{len(batches)} ({len(batch)} orders)")
                    result = await self.submitter.submit(batch)
                    if result is not None:
                        summary.batches.append(result)

            logger.info(
                f"Import finished: {summary.imported} imported, {summary.duplicates} duplicates, "
                f"{summary.errors} errors"
            )
            return summary
        finally:
            self._in_flight = False

    async def _existing_keys(self, orders: Sequence[Any]) -> set[str]:
        """
        Keys of ``orders`` the store already holds.

        A failed lookup skips the pre-check; the import transport still
        reports stored orders as duplicates.
        """
        keys = [extract_key(o) for o in orders]
        try:
            return await asyncio.to_thread(self.store.existing_order_numbers, keys)
        except Exception as e:
            logger.warning(
                f"Store pre-check failed, submitting without it: {e}",
                extra={"error_type": type(e).__name__},
            )
            increment_counter(errors_total, component="coordinator", error_type=type(e).__name__)
            return set()
