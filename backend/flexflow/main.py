from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from flexflow.core.config import settings
from flexflow.core.database import init_db
from flexflow.core.logging_config import configure_logging
from flexflow.routers import entitlements, payments, subscriptions

OPENAPI_TAGS = [
    {"name": "Subscriptions", "description": "Query subscription status and its audit trail."},
    {"name": "Entitlements", "description": "Check access to premium features."},
    {"name": "Payments", "description": "Apply payment confirmations from the payment processor."},
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    configure_logging()
    init_db()
    yield


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.version,
    description=(
        "Subscription and feature entitlement engine for the FlexFlow fitness app. "
        "Tracks trial and paid status, gates premium features, and keeps an "
        "audit trail of every status change."
    ),
    openapi_tags=OPENAPI_TAGS,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(
    subscriptions.router,
    prefix="/v1/subscriptions",
    tags=["Subscriptions"],
)
app.include_router(
    entitlements.router,
    prefix="/v1/entitlements",
    tags=["Entitlements"],
)
app.include_router(
    payments.router,
    prefix="/v1/payments",
    tags=["Payments"],
)


@app.get("/")
async def root() -> dict[str, str]:
    return {
        "app": settings.APP_NAME,
        "version": settings.version,
        "domain": settings.APP_DOMAIN,
        "status": "running",
    }
