"""Ingestion layer.

This package contains adapters that fetch/receive request data from the
farm-connect backend (REST snapshots, websocket events) and emit
normalized :class:`~pyfarmconnect.models.request.Request` records.
"""

__all__: list[str] = []
