"""
Spreadsheet reader using Spark.

Turns uploaded CSV/JSON sheets into raw spreadsheet orders
(``{"source": "spreadsheet", "extracted": {...}}``) for the import pipeline.
"""

import re
from typing import Any

from pyspark.sql import DataFrame, SparkSession

from fieldops.observability.logger import get_logger


logger = get_logger(__name__)

# Normalized header (lowercase, separators removed) -> extracted field name
HEADER_ALIASES = {
    "orderno": "orderNo",
    "ordernumber": "orderNo",
    "order": "orderNo",
    "workorder": "orderNo",
    "workorderno": "orderNo",
    "date": "date",
    "servicedate": "date",
    "driver": "driver",
    "drivername": "driver",
    "technician": "driver",
    "location": "location",
    "locationname": "location",
    "site": "location",
    "address": "address",
    "notes": "notes",
    "servicenotes": "notes",
    "status": "status",
}


def normalize_header(header: str) -> str:
    """
    Map a sheet column header to its extracted field name.

    Unknown headers are converted to camelCase.

    Examples:
        >>> normalize_header("Order No")
        'orderNo'
        >>> normalize_header("order_no")
        'orderNo'
        >>> normalize_header("Crew Size")
        'crewSize'
    """
    words = [w for w in re.split(r"[^0-9A-Za-z]+", header.strip()) if w]
    if not words:
        return header
    alias = HEADER_ALIASES.get("".join(words).lower())
    if alias:
        return alias
    return _camel(words)


def _camel(words: list[str]) -> str:
    return words[0][0].lower() + words[0][1:] + "".join(w[:1].upper() + w[1:] for w in words[1:])


def normalize_headers(headers: list[str]) -> list[str]:
    """
    Normalize a row of headers into unique field names.

    When two headers map to the same field, the first keeps it and later
    ones fall back to their own camelCase name, then to a positional suffix.

    Examples:
        >>> normalize_headers(["Driver", "Driver Name", "driver"])
        ['driver', 'driverName', 'driver_3']
    """
    names: list[str] = []
    for position, header in enumerate(headers, start=1):
        name = normalize_header(header)
        if name in names:
            words = [w for w in re.split(r"[^0-9A-Za-z]+", header.strip()) if w]
            name = _camel(words) if words else header
        if name in names:
            name = f"{name}_{position}"
        names.append(name)
    return names


class SpreadsheetReader:
    """
    Reads order sheets with Spark, all columns as strings.
    """

    def __init__(self, spark: SparkSession):
        """
        Args:
            spark: Active Spark session
        """
        self.spark = spark

    def load(self, file_path: str, file_format: str = "csv", **options) -> DataFrame:
        """
        Load a sheet into a DataFrame with normalized column names.

        Raises:
            ValueError: If file format is unsupported
        """
        fmt = file_format.lower()
        if fmt == "csv":
            reader = self.spark.read.option("header", "true").option("mode", "PERMISSIVE")
            for key, value in options.items():
                reader = reader.option(key, value)
            df = reader.csv(file_path)
        elif fmt == "json":
            df = self.spark.read.option("multiLine", options.get("multiLine", "true")).json(file_path)
        else:
            raise ValueError(f"Unsupported file format: {file_format}")

        return df.toDF(*normalize_headers(df.columns))

    def read(self, file_path: str, file_format: str = "csv", **options) -> list[dict[str, Any]]:
        """
        Read a sheet into raw spreadsheet orders.

        Blank cells become None; rows are returned in file order. Rows
        without an order number are kept and dropped later as unkeyable.

        Returns:
            List of raw order mappings
        """
        df = self.load(file_path, file_format, **options)
        orders = []
        for row in df.collect():
            extracted = {}
            for key, value in row.asDict().items():
                if isinstance(value, str):
                    value = value.strip() or None
                extracted[key] = value
            orders.append({"source": "spreadsheet", "extracted": extracted})

        logger.info(f"Read {len(orders)} rows from {file_path}")
        return orders
