"""
Envelope assembly

Maps raw Assinafy document payloads into DocumentHandle, Envelope and
EnvelopeStatus values. The provider names the same fields differently
across endpoints, so lookups go through ordered candidate lists.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence
from urllib.parse import parse_qsl, urlsplit

from .base import (
    ArtifactKind,
    DocumentHandle,
    DocumentSigner,
    DownloadUrls,
    Envelope,
    EnvelopeSigner,
    EnvelopeStatus,
    ResolvedSigner,
    SignerStatus,
)

ACCESS_TOKEN_PARAM = "access-token"

SIGNING_URL_FIELDS = (
    "signing_url",
    "shared_signing_url",
    "sign_url",
    "signature_url",
)

SIGNED_AT_FIELDS = ("signed_at", "completed_at")

# Preferred artifact for the signed document link
SIGNED_DOCUMENT_ARTIFACTS = (ArtifactKind.CERTIFICATED, ArtifactKind.BUNDLE)


def unwrap(payload: Any) -> Any:
    """Return ``payload["data"]`` when the response is wrapped, else the payload."""
    if isinstance(payload, Mapping) and payload.get("data") is not None:
        return payload["data"]
    return payload


def extract_id(payload: Any) -> Optional[str]:
    """Find an entity id at the top level or under ``data``."""
    if not isinstance(payload, Mapping):
        return None
    data = payload.get("data")
    if isinstance(data, Mapping) and data.get("id"):
        return str(data["id"])
    if payload.get("id"):
        return str(payload["id"])
    return None


def first_present(payload: Mapping[str, Any], fields: Sequence[str]) -> Optional[str]:
    """First non-empty value among ``fields``, in order."""
    for name in fields:
        value = payload.get(name)
        if value:
            return value
    return None


def extract_signing_url(payload: Mapping[str, Any]) -> Optional[str]:
    return first_present(payload, SIGNING_URL_FIELDS)


def with_access_token(url: str, token: str) -> str:
    """Append the access token query parameter, at most once."""
    query = urlsplit(url).query
    if any(key == ACCESS_TOKEN_PARAM for key, _ in parse_qsl(query, keep_blank_values=True)):
        return url
    separator = "&" if query else "?"
    return f"{url}{separator}{ACCESS_TOKEN_PARAM}={token}"


def _parse_artifacts(raw: Any) -> Dict[ArtifactKind, str]:
    artifacts: Dict[ArtifactKind, str] = {}
    if not isinstance(raw, Mapping):
        return artifacts
    for kind in ArtifactKind:
        url = raw.get(kind.value)
        if url:
            artifacts[kind] = url
    return artifacts


def _parse_signers(document: Mapping[str, Any]) -> List[DocumentSigner]:
    assignment = document.get("assignment")
    if not isinstance(assignment, Mapping):
        return []
    summary = assignment.get("summary")
    if not isinstance(summary, Mapping):
        return []
    raw_signers = summary.get("signers") or []

    signers = []
    for raw in raw_signers:
        if not isinstance(raw, Mapping):
            continue
        signers.append(
            DocumentSigner(
                id=str(raw.get("id", "")),
                name=raw.get("full_name") or raw.get("name") or "",
                email=raw.get("email") or "",
                completed=bool(raw.get("completed")),
                signed_at=first_present(raw, SIGNED_AT_FIELDS),
            )
        )
    return signers


def parse_document(payload: Any, fallback_id: Optional[str] = None) -> DocumentHandle:
    """Build a DocumentHandle from a GET /documents/{id} response."""
    document = unwrap(payload)
    if not isinstance(document, Mapping):
        document = {}

    return DocumentHandle(
        provider_document_id=str(document.get("id") or fallback_id or ""),
        status=document.get("status") or "",
        artifacts=_parse_artifacts(document.get("artifacts")),
        signing_url=extract_signing_url(document),
        signers=_parse_signers(document),
        is_closed=bool(document.get("is_closed")),
        decline_reason=document.get("decline_reason"),
        declined_by=document.get("declined_by"),
    )


def build_download_urls(handle: DocumentHandle, token: str) -> DownloadUrls:
    return {
        kind.value: with_access_token(url, token)
        for kind, url in handle.artifacts.items()
    }


def to_envelope_status(handle: DocumentHandle, token: str) -> EnvelopeStatus:
    signed_document_url = None
    for kind in SIGNED_DOCUMENT_ARTIFACTS:
        if kind in handle.artifacts:
            signed_document_url = with_access_token(handle.artifacts[kind], token)
            break

    return EnvelopeStatus(
        id=handle.provider_document_id,
        status=handle.status,
        signed_document_url=signed_document_url,
        signing_url=handle.signing_url,
        signers=[
            SignerStatus(
                id=signer.id,
                name=signer.name,
                email=signer.email,
                signed=signer.completed,
                signed_at=signer.signed_at,
            )
            for signer in handle.signers
        ],
        is_closed=handle.is_closed,
        decline_reason=handle.decline_reason,
        declined_by=handle.declined_by,
    )


def to_envelope(
    document_id: str,
    handle: DocumentHandle,
    signers: Sequence[ResolvedSigner],
) -> Envelope:
    return Envelope(
        id=document_id,
        status=handle.status,
        signers=[
            EnvelopeSigner(
                id=signer.provider_signer_id,
                name=signer.name,
                email=signer.email,
                sign_url=handle.signing_url,
            )
            for signer in signers
        ],
        signing_url=handle.signing_url,
    )
