from signdesk.schemas.envelope import (
    DownloadUrlsRead,
    EnvelopeRead,
    EnvelopeSignerRead,
    EnvelopeStatusRead,
    SignatureErrorRead,
    SignerCreate,
    SignerStatusRead,
)

__all__ = [
    "DownloadUrlsRead",
    "EnvelopeRead",
    "EnvelopeSignerRead",
    "EnvelopeStatusRead",
    "SignatureErrorRead",
    "SignerCreate",
    "SignerStatusRead",
]
