"""
Document processing poller

Waits for an uploaded document to finish provider-side processing using a
fixed-delay poll loop.
"""

import asyncio
from typing import Awaitable, Callable, Iterable, Optional

from signdesk.core.logging import get_logger

from .assembler import parse_document
from .base import (
    DocumentHandle,
    DocumentRejected,
    DocumentStatusClass,
    ProcessingTimeout,
    classify_document_status,
)
from .transport import AssinafyTransport

logger = get_logger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


class ProcessingPoller:
    """Polls GET /documents/{id} until the document is ready for assignment."""

    def __init__(
        self,
        transport: AssinafyTransport,
        interval_seconds: float = 3.0,
        max_attempts: int = 20,
        abort_statuses: Optional[Iterable[str]] = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self.transport = transport
        self.interval_seconds = interval_seconds
        self.max_attempts = max_attempts
        self.abort_statuses = frozenset(s.lower() for s in (abort_statuses or ()))
        self._sleep = sleep

    async def wait_until_ready(
        self,
        document_id: str,
        max_attempts: Optional[int] = None,
    ) -> DocumentHandle:
        """
        Block until the document reports ready or metadata_ready.

        The delay runs before every check, the first one included, since the
        provider needs at least one interval to start processing.

        Raises:
            ProcessingTimeout: If the attempt budget runs out
            DocumentRejected: If the document reaches a configured abort status
            TransportError: If a status check fails
        """
        attempts = max_attempts or self.max_attempts
        logger.info("assinafy.processing.wait", document_id=document_id, max_attempts=attempts)

        for attempt in range(1, attempts + 1):
            await self._sleep(self.interval_seconds)

            result = await self.transport.request(
                f"/documents/{document_id}",
                operation="wait_for_processing",
            )
            document = parse_document(result, fallback_id=document_id)
            status_class = classify_document_status(document.status, self.abort_statuses)

            logger.info(
                "assinafy.processing.check",
                document_id=document_id,
                attempt=attempt,
                max_attempts=attempts,
                status=document.status,
            )

            if status_class is DocumentStatusClass.READY:
                logger.info("assinafy.processing.ready", document_id=document_id, attempt=attempt)
                return document

            if status_class is DocumentStatusClass.TERMINAL:
                raise DocumentRejected(
                    f"Document {document_id} reached status {document.status} while processing",
                    status=document.status,
                    provider="assinafy",
                    envelope_id=document_id,
                )

            if status_class is DocumentStatusClass.UNEXPECTED:
                logger.warning(
                    "assinafy.processing.unexpected_status",
                    document_id=document_id,
                    status=document.status,
                )

        raise ProcessingTimeout(
            f"Document not processed after {attempts} attempts. Please try again.",
            attempts=attempts,
            provider="assinafy",
            envelope_id=document_id,
        )
