"""Transport to the ingestion endpoint."""

from .http import EventSender, IngestClient, send

__all__ = ["EventSender", "IngestClient", "send"]
