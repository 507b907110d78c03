"""
E-signature Base Classes and Interfaces

Defines the envelope data model, the error taxonomy and the provider
contract shared by every e-signature adapter in SignDesk.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ESignatureType(str, Enum):
    """Supported e-signature provider types."""
    ASSINAFY = "assinafy"


class SignerRole(str, Enum):
    """Party of the business transaction a signer represents."""
    COMPANY = "company"
    CREATOR = "creator"


class DocumentStatusClass(str, Enum):
    """How the orchestrator reacts to a provider document status."""
    PENDING = "pending"
    READY = "ready"
    UNEXPECTED = "unexpected"
    TERMINAL = "terminal"


class ArtifactKind(str, Enum):
    """Downloadable document artifacts."""
    ORIGINAL = "original"
    CERTIFICATED = "certificated"
    BUNDLE = "bundle"


PENDING_DOCUMENT_STATUSES = frozenset({"uploaded", "metadata_processing"})
READY_DOCUMENT_STATUSES = frozenset({"metadata_ready", "ready"})


def classify_document_status(
    status: Optional[str],
    abort_statuses: frozenset = frozenset(),
) -> DocumentStatusClass:
    """Classify a raw provider status for the processing poller."""
    normalized = (status or "").lower()
    if normalized in READY_DOCUMENT_STATUSES:
        return DocumentStatusClass.READY
    if normalized in PENDING_DOCUMENT_STATUSES:
        return DocumentStatusClass.PENDING
    if normalized in abort_statuses:
        return DocumentStatusClass.TERMINAL
    return DocumentStatusClass.UNEXPECTED


@dataclass(frozen=True)
class SignerRequest:
    """Signer identity supplied by the caller."""
    name: str
    email: str
    role: SignerRole
    phone: Optional[str] = None
    tax_id: Optional[str] = None  # CPF/CNPJ


@dataclass
class ResolvedSigner:
    """Signer mapped to its provider-side record."""
    provider_signer_id: str
    name: str
    email: str
    role: SignerRole


@dataclass
class DocumentSigner:
    """Signer entry of a document assignment summary."""
    id: str
    name: str
    email: str
    completed: bool = False
    signed_at: Optional[str] = None


@dataclass
class DocumentHandle:
    """Provider document as observed by the orchestrator.

    ``artifacts`` holds raw provider URLs; they must go through
    ``with_access_token`` before leaving the adapter.
    """
    provider_document_id: str
    status: str
    artifacts: Dict[ArtifactKind, str] = field(default_factory=dict)
    signing_url: Optional[str] = None
    signers: List[DocumentSigner] = field(default_factory=list)
    is_closed: bool = False
    decline_reason: Optional[str] = None
    declined_by: Optional[str] = None


@dataclass
class EnvelopeSigner:
    """Signer entry of a freshly created envelope."""
    id: str
    name: str
    email: str
    sign_url: Optional[str] = None


@dataclass
class Envelope:
    """Result of envelope creation."""
    id: str
    status: str
    signers: List[EnvelopeSigner] = field(default_factory=list)
    signing_url: Optional[str] = None


@dataclass
class SignerStatus:
    """Signing progress of one signer."""
    id: str
    name: str
    email: str
    signed: bool = False
    signed_at: Optional[str] = None


@dataclass
class EnvelopeStatus:
    """Current state of an envelope, derived on every call."""
    id: str
    status: str
    signers: List[SignerStatus] = field(default_factory=list)
    signed_document_url: Optional[str] = None
    signing_url: Optional[str] = None
    is_closed: bool = False
    decline_reason: Optional[str] = None
    declined_by: Optional[str] = None

    @property
    def all_signed(self) -> bool:
        return bool(self.signers) and all(signer.signed for signer in self.signers)


# Artifact kind value -> authenticated URL. Kinds absent on the provider have no key.
DownloadUrls = Dict[str, str]


class SignatureError(Exception):
    """E-signature provider specific errors."""

    default_error_code = "signature_error"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        provider: Optional[str] = None,
        provider_response: Optional[Any] = None,
        envelope_id: Optional[str] = None
    ):
        super().__init__(message)
        self.error_message = message
        self.error_code = error_code or self.default_error_code
        self.provider = provider
        self.provider_response = provider_response
        self.envelope_id = envelope_id


class TransportError(SignatureError):
    """Non-2xx response or network failure talking to the provider.

    ``raw_body`` keeps the response body verbatim so callers can match
    provider messages that have no structured error code.
    """

    default_error_code = "transport_error"

    def __init__(
        self,
        message: str,
        http_status: Optional[int] = None,
        raw_body: str = "",
        operation: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.http_status = http_status
        self.raw_body = raw_body
        self.operation = operation


class UploadFailed(SignatureError):
    """Upload response carried no document identifier."""

    default_error_code = "upload_failed"


class DocumentTooLarge(SignatureError):
    """Document exceeds the provider upload limit."""

    default_error_code = "document_too_large"

    def __init__(self, message: str, size_bytes: int = 0, max_size_bytes: int = 0, **kwargs):
        super().__init__(message, **kwargs)
        self.size_bytes = size_bytes
        self.max_size_bytes = max_size_bytes


class ProcessingTimeout(SignatureError):
    """Document was not processed within the attempt budget.

    Retryable by re-submitting; never retried automatically.
    """

    default_error_code = "processing_timeout"
    retryable = True

    def __init__(self, message: str, attempts: int = 0, **kwargs):
        super().__init__(message, **kwargs)
        self.attempts = attempts


class DocumentRejected(SignatureError):
    """Document reached a status configured to abort processing."""

    default_error_code = "document_rejected"

    def __init__(self, message: str, status: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.status = status


class SignerCreationFailed(SignatureError):
    """A signer could not be resolved on the provider."""

    default_error_code = "signer_creation_failed"

    def __init__(self, signer_name: str, message: Optional[str] = None, **kwargs):
        super().__init__(message or f"Failed to create signer: {signer_name}", **kwargs)
        self.signer_name = signer_name


class DispatchFailed(SignatureError):
    """Assignment could not be dispatched to the signers."""

    default_error_code = "dispatch_failed"


class ProviderConfigMissing(SignatureError):
    """Provider credentials are absent."""

    default_error_code = "provider_config_missing"


class ESignatureProvider(ABC):
    """Abstract base class for e-signature providers."""

    def __init__(self, **config):
        """Initialize the e-signature provider with configuration."""
        self.config = config
        self.provider_type = self._get_provider_type()

    @abstractmethod
    def _get_provider_type(self) -> ESignatureType:
        """Return the provider type identifier."""
        pass

    @abstractmethod
    async def create_envelope(
        self,
        content: bytes,
        document_name: str,
        signers: List[SignerRequest],
        message: Optional[str] = None,
        **kwargs
    ) -> Envelope:
        """
        Upload a document and send it to the given signers.

        Args:
            content: Raw PDF bytes
            document_name: Document name shown to signers
            signers: Signer identities, resolved in order
            message: Message sent along with the signing request
            **kwargs: Additional parameters

        Returns:
            Envelope with the provider document id and signer ids

        Raises:
            SignatureError: If any step of the flow fails
        """
        pass

    @abstractmethod
    async def get_envelope_status(self, envelope_id: str) -> EnvelopeStatus:
        """
        Get the current status of an envelope.

        Args:
            envelope_id: Envelope ID

        Returns:
            EnvelopeStatus with per-signer progress

        Raises:
            SignatureError: If status query fails
        """
        pass

    @abstractmethod
    async def get_download_urls(self, envelope_id: str) -> DownloadUrls:
        """
        Get authenticated download URLs for the envelope artifacts.

        Args:
            envelope_id: Envelope ID

        Returns:
            DownloadUrls for the artifacts available right now

        Raises:
            SignatureError: If the document cannot be fetched
        """
        pass

    @abstractmethod
    async def cancel_envelope(self, envelope_id: str, **kwargs) -> None:
        """
        Cancel an envelope.

        Args:
            envelope_id: Envelope ID
            **kwargs: Additional parameters

        Raises:
            SignatureError: If the provider refuses the cancellation
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check if the e-signature provider is reachable.

        Returns:
            True if provider is responding correctly
        """
        pass

    async def close(self) -> None:
        """Release provider resources."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def get_max_document_size_mb(self) -> int:
        """Get maximum document size in MB."""
        return 25


class ESignatureFactory:
    """Factory for creating e-signature provider instances."""

    _providers: Dict[ESignatureType, type] = {}

    @classmethod
    def register_provider(
        cls,
        provider_type: ESignatureType,
        provider_class: type
    ):
        """Register an e-signature provider implementation."""
        cls._providers[provider_type] = provider_class

    @classmethod
    def create_provider(
        cls,
        provider_type: ESignatureType,
        **config
    ) -> ESignatureProvider:
        """Create an e-signature provider instance."""
        if provider_type not in cls._providers:
            raise ValueError(f"Unsupported provider type: {provider_type}")

        provider_class = cls._providers[provider_type]
        return provider_class(**config)

    @classmethod
    def get_supported_providers(cls) -> List[ESignatureType]:
        """Get list of registered provider types."""
        return list(cls._providers.keys())
