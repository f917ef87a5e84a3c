"""
Unit tests for settings loading, input validation and the composition root.
"""

import os
from datetime import date, datetime

import pytest
from pydantic import ValidationError as PydanticValidationError

from fieldops.app import build_application
from fieldops.config.settings import Settings, load_settings
from fieldops.ingest.transports import HttpImportTransport, StoreImportTransport
from fieldops.utils.validation import (
    ValidationError,
    validate_batch_size,
    validate_date_range,
    validate_order_no,
    validate_status,
)
from fieldops.warehouse.connection import DatabaseConnectionPool


@pytest.mark.unit
class TestLoadSettings:
    """Tests for load_settings"""

    def test_defaults(self):
        settings = load_settings(environ={})
        assert settings.database.host == "localhost"
        assert settings.endpoints.import_url is None
        assert settings.import_.batch_size == 50
        assert settings.logging.format == "json"

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text(
            "database:\n  host: db.internal\n  port: 6543\n"
            "endpoints:\n  fetch_url: https://fn.example/fetch\n"
            "import:\n  batch_size: 25\n"
        )

        settings = load_settings(path, environ={})

        assert settings.database.host == "db.internal"
        assert settings.database.port == 6543
        assert settings.endpoints.fetch_url == "https://fn.example/fetch"
        assert settings.import_.batch_size == 25

    def test_environment_overrides_file(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("database:\n  host: db.internal\n")

        settings = load_settings(
            path,
            environ={"DB_HOST": "override", "DB_PASSWORD": "pw", "FIELDOPS_BATCH_SIZE": "10", "LOG_LEVEL": ""},
        )

        assert settings.database.host == "override"
        assert settings.database.password == "pw"
        assert settings.import_.batch_size == 10
        assert settings.logging.level == "INFO"

    def test_config_path_from_environment(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("logging:\n  format: text\n")
        assert load_settings(environ={"FIELDOPS_CONFIG": str(path)}).logging.format == "text"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "missing.yaml", environ={})

    def test_non_mapping_file(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ValueError):
            load_settings(path, environ={})

    def test_invalid_value(self):
        with pytest.raises(PydanticValidationError):
            load_settings(environ={"FIELDOPS_BATCH_SIZE": "0"})

    def test_loads_test_env(self, test_env_vars):
        assert load_settings(environ=dict(os.environ)).logging.format == "text"


@pytest.mark.unit
class TestValidation:
    """Tests for input validators"""

    def test_order_no(self):
        assert validate_order_no("  WO-1/2 #3 ") == "WO-1/2 #3"

    @pytest.mark.parametrize("value", ["", "   ", None, "WO;DROP", "x" * 256])
    def test_invalid_order_no(self, value):
        with pytest.raises(ValidationError):
            validate_order_no(value)

    def test_status(self):
        assert validate_status("approved", {"approved", "rejected"}) == "approved"
        with pytest.raises(ValidationError, match="not one of"):
            validate_status("archived", {"approved", "rejected"})

    def test_date_range(self):
        assert validate_date_range(datetime(2024, 1, 1, 12), date(2024, 1, 3)) == (date(2024, 1, 1), date(2024, 1, 3))

    @pytest.mark.parametrize(
        "start,end",
        [
            (None, date(2024, 1, 1)),
            (date(2024, 1, 5), date(2024, 1, 1)),
            (date(2024, 1, 1), date(2025, 6, 1)),
        ],
    )
    def test_invalid_date_range(self, start, end):
        with pytest.raises(ValidationError):
            validate_date_range(start, end)

    @pytest.mark.parametrize("size", [0, 1001, True, 2.5])
    def test_invalid_batch_size(self, size):
        with pytest.raises(ValidationError):
            validate_batch_size(size)


@pytest.mark.unit
class TestBuildApplication:
    """Tests for build_application without a live database"""

    def test_http_endpoints_without_store(self):
        settings = Settings.model_validate(
            {"endpoints": {"import_url": "https://fn.example/import", "fetch_url": "https://fn.example/fetch"}}
        )

        with build_application(settings, open_pool=False) as app:
            assert app.store is None
            assert isinstance(app.submitter.transport, HttpImportTransport)
            assert app.fetcher is not None
            assert app.coordinator.batch_size == 50

    def test_store_transport_when_no_import_url(self):
        settings = Settings.model_validate({"database": {"password": "pw"}, "import": {"skip_existing": True}})

        app = build_application(settings, open_pool=False)

        assert isinstance(app.pool, DatabaseConnectionPool)
        assert isinstance(app.submitter.transport, StoreImportTransport)
        assert app.coordinator.store is app.store
        assert app.fetcher is None
        app.close()

    def test_store_transport_requires_password(self):
        with pytest.raises(ValueError, match="password"):
            build_application(Settings(), open_pool=False)
