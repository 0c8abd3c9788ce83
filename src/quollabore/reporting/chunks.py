"""Split large failure reports into ordered, numbered log events."""

from __future__ import annotations

import logging
from typing import List

from quollabore.client.http import EventSender
from quollabore.config.settings import DEFAULT_LOG_CHUNK_SIZE
from quollabore.telemetry.metrics import ingest_log_chunks_total

logger = logging.getLogger(__name__)


def chunk_text(text: str, size: int = DEFAULT_LOG_CHUNK_SIZE) -> List[str]:
    if size <= 0:
        raise ValueError("chunk size must be positive")
    if not text:
        return []
    return [text[i : i + size] for i in range(0, len(text), size)]


async def send_big_log(
    sender: EventSender,
    case_id: str,
    title: str,
    body: str,
    *,
    level: str = "error",
    chunk_size: int = DEFAULT_LOG_CHUNK_SIZE,
) -> int:
    """
    Send ``body`` as consecutive ``log`` events headed ``<title> [i/N]``.

    Segments are sent one after another. A failure stops the sequence and
    propagates; segments already accepted stay accepted. Returns the number
    of segments sent.
    """

    chunks = chunk_text(body, chunk_size)
    total = len(chunks)
    for index, part in enumerate(chunks, start=1):
        await sender.send(
            {
                "type": "log",
                "case_id": case_id,
                "level": level,
                "message": f"{title} [{index}/{total}]\n{part}",
            }
        )
        ingest_log_chunks_total.add(1, {"level": level})
    if total:
        logger.debug("sent %d log segment(s) for case %s", total, case_id)
    return total


__all__ = ["chunk_text", "send_big_log"]
