from collections.abc import AsyncIterator

from signdesk.core.config import get_settings
from signdesk.integrations.esignature import AssinafyAdapter, ESignatureProvider


async def get_esignature_provider() -> AsyncIterator[ESignatureProvider]:
    """Yield a configured provider; raises ProviderConfigMissing without credentials."""
    provider = AssinafyAdapter.from_settings(get_settings())
    try:
        yield provider
    finally:
        await provider.close()
