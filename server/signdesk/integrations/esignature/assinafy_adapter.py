"""
Assinafy E-signature Adapter

Drives the Assinafy signing flow: upload, wait for processing, resolve
signers, dispatch the assignment and report envelope status.
"""

import asyncio
from typing import List, Optional

import aiohttp

from signdesk.core.config import DEFAULT_ASSIGNMENT_MESSAGE, Settings
from signdesk.core.logging import get_logger

from .assembler import (
    build_download_urls,
    extract_id,
    parse_document,
    to_envelope,
    to_envelope_status,
)
from .base import (
    DispatchFailed,
    DocumentHandle,
    DocumentTooLarge,
    DownloadUrls,
    ESignatureProvider,
    ESignatureType,
    Envelope,
    EnvelopeStatus,
    ProviderConfigMissing,
    ResolvedSigner,
    SignerRequest,
    TransportError,
    UploadFailed,
)
from .polling import ProcessingPoller, SleepFunc
from .signers import SignerResolver
from .transport import DEFAULT_BASE_URL, AssinafyTransport

logger = get_logger(__name__)


class AssinafyAdapter(ESignatureProvider):
    """Assinafy e-signature adapter."""

    def __init__(
        self,
        api_key: Optional[str],
        workspace_id: Optional[str],
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: int = 30,
        poll_interval_seconds: float = 3.0,
        max_poll_attempts: int = 20,
        abort_statuses: Optional[List[str]] = None,
        max_document_size_mb: int = 25,
        assignment_message: Optional[str] = None,
        session: Optional[aiohttp.ClientSession] = None,
        sleep: SleepFunc = asyncio.sleep,
        **config
    ):
        """
        Initialize Assinafy adapter.

        Args:
            api_key: Assinafy API key
            workspace_id: Assinafy workspace (account) id
            base_url: API base URL
            timeout_seconds: Per-request timeout
            poll_interval_seconds: Delay before each processing status check
            max_poll_attempts: Processing status checks before timing out
            abort_statuses: Statuses that abort processing instead of polling on
            max_document_size_mb: Largest document accepted for upload
            assignment_message: Default message sent with signing requests
            session: Existing aiohttp session to reuse
            sleep: Coroutine used for poll delays
            **config: Additional configuration

        Raises:
            ProviderConfigMissing: If the API key or workspace id is missing
        """
        if not api_key or not workspace_id:
            raise ProviderConfigMissing(
                "Assinafy API credentials not configured",
                provider="assinafy",
            )

        super().__init__(
            workspace_id=workspace_id,
            base_url=base_url,
            **config
        )
        self.api_key = api_key
        self.workspace_id = workspace_id
        self.assignment_message = assignment_message or DEFAULT_ASSIGNMENT_MESSAGE
        self.max_document_size_mb = max_document_size_mb

        self.transport = AssinafyTransport(
            api_key=api_key,
            base_url=base_url,
            timeout_seconds=timeout_seconds,
            session=session,
        )
        self.poller = ProcessingPoller(
            self.transport,
            interval_seconds=poll_interval_seconds,
            max_attempts=max_poll_attempts,
            abort_statuses=abort_statuses,
            sleep=sleep,
        )

    @classmethod
    def from_settings(cls, settings: Settings, **overrides) -> "AssinafyAdapter":
        """Build an adapter from application settings."""
        options = dict(
            api_key=settings.assinafy_api_key,
            workspace_id=settings.assinafy_workspace_id,
            base_url=settings.assinafy_base_url,
            timeout_seconds=settings.assinafy_timeout_seconds,
            poll_interval_seconds=settings.assinafy_poll_interval_seconds,
            max_poll_attempts=settings.assinafy_max_poll_attempts,
            abort_statuses=settings.assinafy_abort_statuses,
            max_document_size_mb=settings.assinafy_max_document_size_mb,
            assignment_message=settings.assinafy_assignment_message,
        )
        options.update(overrides)
        return cls(**options)

    def _get_provider_type(self) -> ESignatureType:
        """Return the provider type identifier."""
        return ESignatureType.ASSINAFY

    def get_max_document_size_mb(self) -> int:
        return self.max_document_size_mb

    def new_signer_resolver(self) -> SignerResolver:
        return SignerResolver(self.transport, self.workspace_id)

    async def upload_document(self, content: bytes, filename: str) -> str:
        """
        Upload a PDF to the workspace.

        POST /accounts/{workspace}/documents (multipart)

        Raises:
            DocumentTooLarge: If the content exceeds the upload limit
            UploadFailed: If the response carries no document id
            TransportError: If the upload request fails
        """
        logger.info("assinafy.upload.start", filename=filename, size_bytes=len(content))

        max_size_bytes = self.get_max_document_size_mb() * 1024 * 1024
        if len(content) > max_size_bytes:
            logger.error("assinafy.upload.too_large", size_bytes=len(content), max_size_bytes=max_size_bytes)
            raise DocumentTooLarge(
                f"Document is {len(content)} bytes; the upload limit is {max_size_bytes} bytes",
                size_bytes=len(content),
                max_size_bytes=max_size_bytes,
                provider="assinafy",
            )

        form = aiohttp.FormData()
        form.add_field("file", content, filename=filename, content_type="application/pdf")

        result = await self.transport.request(
            f"/accounts/{self.workspace_id}/documents",
            method="POST",
            body=form,
            is_binary=True,
            operation="upload_document",
        )

        document_id = extract_id(result)
        if not document_id:
            logger.error("assinafy.upload.missing_id", response=result)
            raise UploadFailed(
                "Failed to get document ID from upload response",
                provider="assinafy",
                provider_response=result,
            )

        logger.info("assinafy.upload.done", document_id=document_id)
        return document_id

    async def wait_for_processing(
        self,
        document_id: str,
        max_attempts: Optional[int] = None,
    ) -> DocumentHandle:
        return await self.poller.wait_until_ready(document_id, max_attempts=max_attempts)

    async def dispatch_assignment(
        self,
        document_id: str,
        signer_ids: List[str],
        message: Optional[str] = None,
    ) -> None:
        """
        Link signers to the document and have the provider notify them.

        POST /documents/{document_id}/assignments

        Never retried: a second attempt could notify signers twice.

        Raises:
            DispatchFailed: If the provider rejects the assignment
        """
        logger.info("assinafy.assignment.start", document_id=document_id, signer_ids=signer_ids)

        payload = {
            "method": "virtual",
            "signer_ids": list(signer_ids),
            "message": message or self.assignment_message,
        }

        try:
            await self.transport.request(
                f"/documents/{document_id}/assignments",
                method="POST",
                body=payload,
                operation="create_assignment",
            )
        except TransportError as e:
            logger.error("assinafy.assignment.failed", document_id=document_id, error=str(e))
            raise DispatchFailed(
                f"Failed to dispatch document {document_id} for signature: {e.error_message}",
                provider="assinafy",
                provider_response=e.raw_body,
                envelope_id=document_id,
            ) from e

        logger.info("assinafy.assignment.done", document_id=document_id)

    async def get_document(self, document_id: str) -> DocumentHandle:
        """GET /documents/{document_id}"""
        result = await self.transport.request(
            f"/documents/{document_id}",
            operation="get_document_status",
        )
        document = parse_document(result, fallback_id=document_id)
        logger.info("assinafy.document.status", document_id=document_id, status=document.status)
        return document

    async def create_envelope(
        self,
        content: bytes,
        document_name: str,
        signers: List[SignerRequest],
        message: Optional[str] = None,
        max_attempts: Optional[int] = None,
        **kwargs
    ) -> Envelope:
        """
        Complete flow: upload, wait, resolve signers, dispatch, read status.

        Signers are resolved one at a time. Remote side effects of a failed
        call (uploaded document, created signers) are left in place.

        Raises:
            ValueError: If the document is empty or there are no signers
            DocumentTooLarge, UploadFailed, ProcessingTimeout, DocumentRejected,
            SignerCreationFailed, DispatchFailed, TransportError
        """
        if not content:
            raise ValueError("Document content is empty")
        if not signers:
            raise ValueError("At least one signer is required")

        logger.info("assinafy.envelope.start", document_name=document_name, signer_count=len(signers))

        filename = document_name if document_name.lower().endswith(".pdf") else f"{document_name}.pdf"
        document_id = await self.upload_document(content, filename)

        await self.wait_for_processing(document_id, max_attempts=max_attempts)

        resolver = self.new_signer_resolver()
        resolved: List[ResolvedSigner] = []
        for signer in signers:
            resolved.append(await resolver.resolve(signer))

        await self.dispatch_assignment(
            document_id,
            [signer.provider_signer_id for signer in resolved],
            message=message,
        )

        final_state = await self.get_document(document_id)
        envelope = to_envelope(document_id, final_state, resolved)

        logger.info(
            "assinafy.envelope.created",
            document_id=document_id,
            status=envelope.status,
            has_signing_url=envelope.signing_url is not None,
        )
        return envelope

    async def get_envelope_status(self, envelope_id: str) -> EnvelopeStatus:
        document = await self.get_document(envelope_id)
        return to_envelope_status(document, self.api_key)

    async def get_download_urls(self, envelope_id: str) -> DownloadUrls:
        document = await self.get_document(envelope_id)
        return build_download_urls(document, self.api_key)

    async def cancel_envelope(self, envelope_id: str, **kwargs) -> None:
        """
        DELETE /documents/{document_id}

        The provider decides whether cancellation is allowed; its error is
        raised unchanged.
        """
        logger.info("assinafy.envelope.cancel", document_id=envelope_id)
        await self.transport.request(
            f"/documents/{envelope_id}",
            method="DELETE",
            operation="cancel_envelope",
        )
        logger.info("assinafy.envelope.cancelled", document_id=envelope_id)

    async def health_check(self) -> bool:
        try:
            await self.transport.request(
                f"/accounts/{self.workspace_id}/signers",
                operation="health_check",
            )
            return True
        except TransportError as e:
            logger.error("assinafy.health_check_failed", error=str(e))
            return False

    async def close(self):
        """Close the HTTP session."""
        await self.transport.close()
