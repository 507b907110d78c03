"""
Signer resolution

Maps a (name, email) identity to an Assinafy signer id without creating
duplicate signer records for the same email.
"""

from typing import Dict, Optional
from urllib.parse import quote

from signdesk.core.logging import get_logger

from .assembler import extract_id, unwrap
from .base import (
    ResolvedSigner,
    SignatureError,
    SignerCreationFailed,
    SignerRequest,
    TransportError,
)
from .transport import AssinafyTransport

logger = get_logger(__name__)

# The provider reports duplicate signers only through free-text error bodies
CONFLICT_INDICATORS = (
    "8000",
    "já existe",
    "already exists",
    "duplicate",
)


def is_conflict_error(error: SignatureError) -> bool:
    """Whether a create-signer failure means the signer already exists."""
    haystack = f"{getattr(error, 'raw_body', '')} {error.error_message}".lower()
    return any(indicator in haystack for indicator in CONFLICT_INDICATORS)


class SignerResolver:
    """Resolves signers for a single envelope creation.

    Resolved ids are cached by lowercased email for the lifetime of the
    resolver, so one instance must not outlive one creation call.
    """

    def __init__(self, transport: AssinafyTransport, workspace_id: str):
        self.transport = transport
        self.workspace_id = workspace_id
        self._cache: Dict[str, str] = {}

    @property
    def signers_path(self) -> str:
        return f"/accounts/{self.workspace_id}/signers"

    async def find_by_email(self, email: str) -> Optional[str]:
        """Look up an existing signer; lookup failures count as not found."""
        logger.info("assinafy.signer.lookup", signer_email=email)
        try:
            result = await self.transport.request(
                f"{self.signers_path}?email={quote(email, safe='')}",
                operation="find_signer",
            )
        except TransportError as e:
            logger.info("assinafy.signer.lookup_failed", signer_email=email, error=str(e))
            return None

        signers = unwrap(result) or []
        if not isinstance(signers, list):
            return None

        wanted = email.lower()
        for signer in signers:
            if not isinstance(signer, dict):
                continue
            candidate = signer.get("email")
            if candidate and candidate.lower() == wanted and signer.get("id"):
                logger.info("assinafy.signer.found", signer_email=email, signer_id=signer["id"])
                return str(signer["id"])
        return None

    async def create(self, name: str, email: str) -> str:
        result = await self.transport.request(
            self.signers_path,
            method="POST",
            body={"full_name": name, "email": email},
            operation="create_signer",
        )
        signer_id = extract_id(result)
        if not signer_id:
            logger.error("assinafy.signer.missing_id", response=result)
            raise SignatureError(
                "Failed to get signer ID from response",
                error_code="signer_id_missing",
                provider="assinafy",
                provider_response=result,
            )

        logger.info("assinafy.signer.created", signer_email=email, signer_id=signer_id)
        return signer_id

    async def resolve_signer(self, name: str, email: str) -> str:
        """
        Return the provider signer id for ``email``, creating it if absent.

        A create call that fails because the signer already exists (created
        concurrently since the lookup) triggers one more lookup before the
        original error is raised.
        """
        key = email.lower()
        if key in self._cache:
            return self._cache[key]

        signer_id = await self.find_by_email(email)
        if signer_id is None:
            try:
                signer_id = await self.create(name, email)
            except SignatureError as e:
                if not is_conflict_error(e):
                    raise
                logger.info("assinafy.signer.conflict_retry", signer_email=email)
                signer_id = await self.find_by_email(email)
                if signer_id is None:
                    raise

        self._cache[key] = signer_id
        return signer_id

    async def resolve(self, signer: SignerRequest) -> ResolvedSigner:
        """Resolve a SignerRequest, tagging any failure with the signer name."""
        try:
            signer_id = await self.resolve_signer(signer.name, signer.email)
        except SignatureError as e:
            logger.error("assinafy.signer.failed", signer_name=signer.name, error=str(e))
            raise SignerCreationFailed(
                signer.name,
                provider="assinafy",
                provider_response=getattr(e, "raw_body", None) or e.provider_response,
            ) from e

        return ResolvedSigner(
            provider_signer_id=signer_id,
            name=signer.name,
            email=signer.email,
            role=signer.role,
        )
