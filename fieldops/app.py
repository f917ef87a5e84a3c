"""
Application composition root.

Builds the connection pool, store, transports and pipeline services from
settings. Nothing here is a module-level singleton; callers own the
Application and close it when done.
"""

from fieldops.config.settings import Settings, load_settings
from fieldops.ingest.coordinator import ImportCoordinator
from fieldops.ingest.fetcher import OrderFetcher
from fieldops.ingest.submitter import BulkImportSubmitter
from fieldops.ingest.transports import (
    HttpImportTransport,
    HttpOrderFetchTransport,
    ImportTransport,
    StoreImportTransport,
    build_session,
)
from fieldops.observability.logger import get_logger, setup_logger
from fieldops.warehouse.connection import DatabaseConnectionPool
from fieldops.warehouse.work_orders import WorkOrderStore


logger = get_logger(__name__)


class Application:
    """
    Wired pipeline services.

    Attributes:
        settings: Settings the application was built from
        pool: Database pool, or None when no store is configured
        store: Work-order store, or None when no store is configured
        submitter: Bulk import submitter
        coordinator: Batched import coordinator
        fetcher: Order fetcher, or None when no fetch URL is configured
    """

    def __init__(
        self,
        settings: Settings,
        submitter: BulkImportSubmitter,
        coordinator: ImportCoordinator,
        fetcher: OrderFetcher | None = None,
        pool: DatabaseConnectionPool | None = None,
        store: WorkOrderStore | None = None,
        closeables: list | None = None,
    ):
        self.settings = settings
        self.submitter = submitter
        self.coordinator = coordinator
        self.fetcher = fetcher
        self.pool = pool
        self.store = store
        self._closeables = closeables or []

    def close(self) -> None:
        """Close HTTP sessions and the database pool."""
        for closeable in self._closeables:
            closeable.close()
        self._closeables = []
        if self.pool is not None:
            self.pool.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def build_application(settings: Settings | None = None, open_pool: bool = True) -> Application:
    """
    Construct the application from settings.

    A store is built when a database password is configured, and always
    when no import URL is set (imports then go straight to the store).
    Without a fetch URL the application has no fetcher.

    Args:
        settings: Settings to use; loaded from file/environment when omitted
        open_pool: Open the database pool before returning

    Raises:
        ValueError: If imports need the store but no database password is set
    """
    settings = settings or load_settings()
    setup_logger(level=settings.logging.level, format_type=settings.logging.format)

    endpoints = settings.endpoints
    closeables = []
    pool = store = None

    if settings.database.password or not endpoints.import_url:
        pool = DatabaseConnectionPool.from_settings(settings.database)
        if open_pool:
            pool.open()
        store = WorkOrderStore(pool)

    import_transport: ImportTransport
    if endpoints.import_url:
        import_transport = HttpImportTransport(
            endpoints.import_url,
            build_session(retries=0, api_key=endpoints.api_key),
            timeout=endpoints.timeout_seconds,
        )
        closeables.append(import_transport)
        logger.info(f"Imports will be posted to {endpoints.import_url}")
    else:
        import_transport = StoreImportTransport(store)
        logger.info("Imports will be written directly to the work-order store")

    fetcher = None
    if endpoints.fetch_url:
        fetch_transport = HttpOrderFetchTransport(
            endpoints.fetch_url,
            build_session(retries=endpoints.fetch_retries, api_key=endpoints.api_key),
            timeout=endpoints.timeout_seconds,
        )
        closeables.append(fetch_transport)
        fetcher = OrderFetcher(fetch_transport)

    submitter = BulkImportSubmitter(import_transport)
    coordinator = ImportCoordinator(
        submitter,
        batch_size=settings.import_.batch_size,
        store=store if settings.import_.skip_existing else None,
    )

    return Application(
        settings=settings,
        submitter=submitter,
        coordinator=coordinator,
        fetcher=fetcher,
        pool=pool,
        store=store,
        closeables=closeables,
    )
