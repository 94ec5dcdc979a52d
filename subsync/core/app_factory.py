from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings
from .container import ApplicationContainer
from .logging import configure_logging
from ..application.services.auth_service import AuthService
from ..domain.errors import ProviderError, StoreError
from ..infrastructure.persistence.sqlite import SQLiteAccountStore
from ..presentation.api.routers import dashboard as dashboard_router
from ..presentation.api.routers import subscription as subscription_router
from ..presentation.api.routers import tracking as tracking_router
from ..presentation.api.routers import webhooks as webhooks_router
from ..services.stripe_service import StripeService
from ..services.subscription_policy import SubscriptionPolicy
from ..services.subscription_service import SubscriptionService
from ..services.tracking_service import LoggingAnalyticsSink, TrackingService

logger = logging.getLogger(__name__)


def create_application(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()

    app = FastAPI(title="Subscription Sync", lifespan=_create_lifespan(settings))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(dashboard_router.router)
    app.include_router(subscription_router.router)
    app.include_router(webhooks_router.router)
    app.include_router(tracking_router.router)

    _register_exception_handlers(app)

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {"ok": True}

    return app


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ProviderError)
    async def provider_error(request: Request, exc: ProviderError) -> JSONResponse:
        logger.error("%s %s - billing provider error: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"detail": "Billing provider request failed."},
        )

    @app.exception_handler(StoreError)
    async def store_error(request: Request, exc: StoreError) -> JSONResponse:
        logger.error("%s %s - account store error: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Account storage failed."},
        )


def build_container(settings: Settings) -> ApplicationContainer:
    accounts = SQLiteAccountStore(settings.database_path)
    stripe_service = StripeService(
        secret_key=settings.stripe_secret_key,
        webhook_secret=settings.stripe_webhook_secret,
        timeout_seconds=settings.stripe_timeout_seconds,
        max_network_retries=settings.stripe_max_network_retries,
    )
    policy = SubscriptionPolicy(
        exempt_emails=settings.subscription_exempt_emails,
        exempt_domains=settings.subscription_exempt_domains,
    )
    subscription_service = SubscriptionService(
        accounts,
        stripe_service,
        default_plan=settings.stripe_default_plan,
        policy=policy,
    )
    tracking_service = TrackingService(accounts, LoggingAnalyticsSink())
    auth_service = AuthService(settings.auth_token_secret, settings.auth_token_algorithm)

    return ApplicationContainer(
        settings=settings,
        accounts=accounts,
        stripe_service=stripe_service,
        subscription_service=subscription_service,
        tracking_service=tracking_service,
        auth_service=auth_service,
    )


def _create_lifespan(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(settings)
        container = build_container(settings)
        app.state.container = container  # type: ignore[attr-defined]
        logger.info("Subscription sync started with default plan %s", settings.stripe_default_plan)

        try:
            yield
        finally:
            container.accounts.close()

    return lifespan
