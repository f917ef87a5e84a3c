"""
fieldops: work-order ingestion pipeline.

Identity extraction, deduplication, bulk import submission, order
transformation and status aggregation for field-service work orders.
"""

__version__ = "0.1.0"
