"""
LOGHOOK - logging-event webhook for BigQuery

A single HTTP endpoint that accepts structured logging events as JSON,
optionally verifies an HMAC signature over the raw body, and forwards
each event as exactly one row into a BigQuery table.
"""

__version__ = "0.1.0"
