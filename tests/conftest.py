"""
Pytest configuration and fixtures for fieldops tests

This module provides shared fixtures for unit, integration, and E2E tests.
"""
import os
from typing import Generator

import psycopg
import pytest
from pyspark.sql import SparkSession
from testcontainers.postgres import PostgresContainer

from fieldops.warehouse.connection import DatabaseConnectionPool


PROJECT_ROOT = os.path.dirname(os.path.dirname(__file__))


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that require Docker containers"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests that test the full pipeline"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take more than 5 seconds to run"
    )


# =======================
# SPARK FIXTURES
# =======================

@pytest.fixture(scope="session")
def spark_session() -> Generator[SparkSession, None, None]:
    """
    Create a Spark session for testing with local mode

    Yields:
        SparkSession configured for local testing
    """
    spark = (
        SparkSession.builder
        .appName("fieldops-test")
        .master("local[1]")
        .config("spark.sql.shuffle.partitions", "1")
        .config("spark.driver.memory", "1g")
        .config("spark.ui.enabled", "false")
        .getOrCreate()
    )
    spark.sparkContext.setLogLevel("WARN")

    yield spark

    spark.stop()


# =======================
# DATABASE FIXTURES (Testcontainers)
# =======================

@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer, None, None]:
    """
    Start PostgreSQL container with the work-order schema applied

    Yields:
        PostgresContainer instance with initialized database
    """
    with PostgresContainer(
        image="postgres:16.2-alpine",
        username="test_fieldops",
        password="test_password",
        dbname="test_fieldops",
    ) as postgres:
        init_sql_path = os.path.join(PROJECT_ROOT, "docker", "init-db.sql")
        with open(init_sql_path) as f:
            init_sql = f.read()

        with psycopg.connect(postgres.get_connection_url(driver=None)) as conn:
            with conn.cursor() as cur:
                cur.execute(init_sql)
            conn.commit()

        yield postgres


@pytest.fixture(scope="session")
def db_pool(postgres_container) -> Generator[DatabaseConnectionPool, None, None]:
    """
    Open a connection pool against the test container

    Yields:
        Open DatabaseConnectionPool
    """
    pool = DatabaseConnectionPool(
        host=postgres_container.get_container_host_ip(),
        port=int(postgres_container.get_exposed_port(5432)),
        database="test_fieldops",
        user="test_fieldops",
        password="test_password",
        max_size=4,
    )
    pool.open()
    yield pool
    pool.close()


@pytest.fixture(scope="function")
def clean_db(db_pool) -> DatabaseConnectionPool:
    """
    Truncate the work-order tables before a test

    Returns:
        The open pool, with empty tables
    """
    db_pool.execute_command("TRUNCATE TABLE status_change, work_orders RESTART IDENTITY CASCADE")
    return db_pool


# =======================
# CONFIGURATION FIXTURES
# =======================

@pytest.fixture(scope="session")
def test_env_vars():
    """
    Load config/test.env into the environment
    """
    from dotenv import load_dotenv

    env_path = os.path.join(PROJECT_ROOT, "config", "test.env")
    if os.path.exists(env_path):
        load_dotenv(env_path, override=True)


# =======================
# SAMPLE ORDER FIXTURES
# =======================

@pytest.fixture
def api_order() -> dict:
    """Raw order as returned by the bulk order fetch"""
    return {
        "orderNo": "WO-1001",
        "searchResponse": {
            "data": {
                "orderNo": "WO-1001",
                "date": "2024-01-01",
                "notes": "Gate code 4411",
                "customField5": "2024-02-01 00:00",
                "location": {
                    "name": "Main St Depot",
                    "address": "12 Main St",
                    "city": "Springfield",
                    "state": "IL",
                    "zip": "62701",
                },
            },
            "scheduleInformation": {"driverName": "Sam Lee", "driverSerial": "D-7"},
        },
        "completionDetails": {
            "data": {
                "status": "success",
                "endTime": {"localTime": "2024-01-05T10:00:00"},
                "form": {
                    "note": "Replaced filter",
                    "images": [{"url": "https://img.example/1.jpg"}],
                    "signature": {"url": "https://img.example/sig.png"},
                },
                "tracking_url": "https://track.example/WO-1001",
            }
        },
    }


@pytest.fixture
def spreadsheet_order() -> dict:
    """Raw order as produced by the spreadsheet reader"""
    return {
        "source": "spreadsheet",
        "extracted": {
            "orderNo": "WO-2001",
            "date": "2024-03-04",
            "driver": "Ana Ruiz",
            "location": "North Yard",
            "notes": "Second visit",
        },
    }


@pytest.fixture
def manual_order() -> dict:
    """Raw order typed in by an operator"""
    return {"orderNo": "WO-3001", "timestamp": "2024-04-02T08:30:00", "notes": "Walk-in"}
