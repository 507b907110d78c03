from pydantic import BaseModel, EmailStr, Field

from signdesk.integrations.esignature.base import SignerRequest, SignerRole
from signdesk.schemas.common import ORMModel


class SignerCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    role: SignerRole
    phone: str | None = Field(default=None, max_length=32)
    tax_id: str | None = Field(default=None, max_length=32)

    def to_request(self) -> SignerRequest:
        return SignerRequest(
            name=self.name,
            email=str(self.email),
            role=self.role,
            phone=self.phone,
            tax_id=self.tax_id,
        )


class EnvelopeSignerRead(ORMModel):
    id: str
    name: str
    email: str
    sign_url: str | None = None


class EnvelopeRead(ORMModel):
    id: str
    status: str
    signers: list[EnvelopeSignerRead]
    signing_url: str | None = None


class SignerStatusRead(ORMModel):
    id: str
    name: str
    email: str
    signed: bool
    signed_at: str | None = None


class EnvelopeStatusRead(ORMModel):
    id: str
    status: str
    signed_document_url: str | None = None
    signing_url: str | None = None
    signers: list[SignerStatusRead]
    is_closed: bool = False
    decline_reason: str | None = None
    declined_by: str | None = None
    all_signed: bool


class DownloadUrlsRead(ORMModel):
    original: str | None = None
    certificated: str | None = None
    bundle: str | None = None


class SignatureErrorRead(BaseModel):
    error_code: str
    message: str
    operation: str | None = None
    provider_status: int | None = None
    signer_name: str | None = None
    retryable: bool = False
