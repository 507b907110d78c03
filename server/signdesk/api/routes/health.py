from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends

from signdesk.api.dependencies.esignature import get_esignature_provider
from signdesk.integrations.esignature import ESignatureProvider

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(provider: ESignatureProvider = Depends(get_esignature_provider)) -> Dict[str, Any]:
    provider_healthy = await provider.health_check()
    return {
        "status": "healthy" if provider_healthy else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": {
            provider.provider_type.value: {"status": "healthy" if provider_healthy else "unhealthy"},
        },
    }
