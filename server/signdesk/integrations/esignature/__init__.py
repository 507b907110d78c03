"""
E-signature integration modules

Provides the Assinafy adapter and the envelope data model shared with the
rest of the application.
"""

from .base import (
    ESignatureProvider,
    ESignatureFactory,
    ESignatureType,
    SignerRole,
    SignerRequest,
    ResolvedSigner,
    DocumentHandle,
    DocumentSigner,
    DocumentStatusClass,
    ArtifactKind,
    Envelope,
    EnvelopeSigner,
    EnvelopeStatus,
    SignerStatus,
    DownloadUrls,
    SignatureError,
    TransportError,
    UploadFailed,
    DocumentTooLarge,
    ProcessingTimeout,
    DocumentRejected,
    SignerCreationFailed,
    DispatchFailed,
    ProviderConfigMissing,
)
from .assinafy_adapter import AssinafyAdapter

ESignatureFactory.register_provider(ESignatureType.ASSINAFY, AssinafyAdapter)

__all__ = [
    "ESignatureProvider",
    "ESignatureFactory",
    "ESignatureType",
    "SignerRole",
    "SignerRequest",
    "ResolvedSigner",
    "DocumentHandle",
    "DocumentSigner",
    "DocumentStatusClass",
    "ArtifactKind",
    "Envelope",
    "EnvelopeSigner",
    "EnvelopeStatus",
    "SignerStatus",
    "DownloadUrls",
    "SignatureError",
    "TransportError",
    "UploadFailed",
    "DocumentTooLarge",
    "ProcessingTimeout",
    "DocumentRejected",
    "SignerCreationFailed",
    "DispatchFailed",
    "ProviderConfigMissing",
    "AssinafyAdapter",
]
