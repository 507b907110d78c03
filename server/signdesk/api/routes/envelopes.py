import json

from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile, status
from pydantic import TypeAdapter, ValidationError

from signdesk.api.dependencies.esignature import get_esignature_provider
from signdesk.core.logging import get_logger
from signdesk.integrations.esignature import ESignatureProvider
from signdesk.schemas.envelope import (
    DownloadUrlsRead,
    EnvelopeRead,
    EnvelopeStatusRead,
    SignerCreate,
)

logger = get_logger(__name__)
router = APIRouter(prefix="/envelopes", tags=["envelopes"])

_signer_list = TypeAdapter(list[SignerCreate])


def parse_signers(raw: str) -> list[SignerCreate]:
    try:
        signers = _signer_list.validate_python(json.loads(raw))
    except (json.JSONDecodeError, ValidationError) as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Invalid signers payload: {exc}",
        ) from exc
    if not signers:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="At least one signer is required")
    return signers


@router.post("", response_model=EnvelopeRead, status_code=status.HTTP_201_CREATED)
async def create_envelope_endpoint(
    file: UploadFile = File(...),
    document_name: str = Form(..., min_length=1, max_length=255),
    signers: str = Form(..., description="JSON list of signers"),
    message: str | None = Form(default=None),
    provider: ESignatureProvider = Depends(get_esignature_provider),
) -> EnvelopeRead:
    signer_requests = [signer.to_request() for signer in parse_signers(signers)]
    content = await file.read()
    if not content:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Uploaded document is empty")

    envelope = await provider.create_envelope(content, document_name, signer_requests, message=message)
    logger.info("envelope.created", envelope_id=envelope.id, status=envelope.status)
    return EnvelopeRead.model_validate(envelope)


@router.get("/{envelope_id}", response_model=EnvelopeStatusRead)
async def get_envelope_status_endpoint(
    envelope_id: str,
    provider: ESignatureProvider = Depends(get_esignature_provider),
) -> EnvelopeStatusRead:
    envelope_status = await provider.get_envelope_status(envelope_id)
    return EnvelopeStatusRead.model_validate(envelope_status)


@router.get("/{envelope_id}/downloads", response_model=DownloadUrlsRead, response_model_exclude_none=True)
async def get_download_urls_endpoint(
    envelope_id: str,
    provider: ESignatureProvider = Depends(get_esignature_provider),
) -> DownloadUrlsRead:
    urls = await provider.get_download_urls(envelope_id)
    return DownloadUrlsRead.model_validate(urls)


@router.delete("/{envelope_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_envelope_endpoint(
    envelope_id: str,
    provider: ESignatureProvider = Depends(get_esignature_provider),
) -> Response:
    await provider.cancel_envelope(envelope_id)
    logger.info("envelope.cancelled", envelope_id=envelope_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
