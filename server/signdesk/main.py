from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from signdesk.api.routes import envelopes, health
from signdesk.core.config import get_settings
from signdesk.core.logging import configure_logging, get_logger
from signdesk.integrations.esignature import (
    DocumentTooLarge,
    ProcessingTimeout,
    ProviderConfigMissing,
    SignatureError,
    SignerCreationFailed,
    TransportError,
)
from signdesk.schemas.envelope import SignatureErrorRead


configure_logging(get_settings().log_level)
logger = get_logger(__name__)


def status_code_for(exc: SignatureError) -> int:
    if isinstance(exc, ProviderConfigMissing):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    if isinstance(exc, DocumentTooLarge):
        return 413
    if isinstance(exc, ProcessingTimeout):
        return status.HTTP_504_GATEWAY_TIMEOUT
    if isinstance(exc, TransportError) and exc.http_status == status.HTTP_404_NOT_FOUND:
        return status.HTTP_404_NOT_FOUND
    return status.HTTP_502_BAD_GATEWAY


def error_body(exc: SignatureError) -> SignatureErrorRead:
    return SignatureErrorRead(
        error_code=exc.error_code,
        message=exc.error_message,
        operation=getattr(exc, "operation", None),
        provider_status=getattr(exc, "http_status", None),
        signer_name=exc.signer_name if isinstance(exc, SignerCreationFailed) else None,
        retryable=getattr(exc, "retryable", False),
    )


async def signature_error_handler(request: Request, exc: SignatureError) -> JSONResponse:
    status_code = status_code_for(exc)
    logger.error(
        "signature.request_failed",
        path=request.url.path,
        error_code=exc.error_code,
        status_code=status_code,
        error=exc.error_message,
    )
    return JSONResponse(status_code=status_code, content=error_body(exc).model_dump())


def create_application() -> FastAPI:
    settings = get_settings()
    application = FastAPI(title=settings.app_name)
    application.include_router(health.router)
    application.include_router(envelopes.router)
    application.add_exception_handler(SignatureError, signature_error_handler)

    if settings.allowed_origins:
        application.add_middleware(
            CORSMiddleware,
            allow_origins=[str(origin) for origin in settings.allowed_origins],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    if not settings.assinafy_configured:
        logger.warning("assinafy.not_configured", environment=settings.environment)

    logger.info("application.created", environment=settings.environment)
    return application


app = create_application()
