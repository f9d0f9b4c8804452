from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.exceptions import TokenServiceException
from app.core.logging import setup_logging
from app.core.rate_limit import SlidingWindowLimiter
from app.routers import auth
from app.services.email import Notifier, SmtpNotifier, VerificationUrlBuilder
from app.services.tokens import TokenPolicy


def create_app(*, notifier: Notifier | None = None, policy: TokenPolicy | None = None) -> FastAPI:
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(title=settings.APP_NAME)
    app.state.notifier = notifier or SmtpNotifier(settings)
    app.state.token_policy = policy or TokenPolicy.from_settings(settings)
    app.state.url_builder = VerificationUrlBuilder(settings.VERIFICATION_BASE_URL)
    app.state.request_limiter = SlidingWindowLimiter()

    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])

    @app.exception_handler(TokenServiceException)
    async def handle_token_service_exception(_: Request, exc: TokenServiceException) -> JSONResponse:
        headers = exc.headers if getattr(exc, "headers", None) else None
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)

    return app


app = create_app()
