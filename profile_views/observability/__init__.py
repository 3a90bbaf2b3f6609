"""Observability helpers.

structlog on top of stdlib logging: JSON lines in production, a console renderer
locally, request IDs bound through contextvars, and an in-memory metrics snapshot.
"""
