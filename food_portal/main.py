"""Food distribution admin portal - FastAPI entrypoint."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError

from food_portal.config import settings
from food_portal.db import db_shutdown, db_startup
from food_portal.errors import AuthError, PortalError
from food_portal.seed import seed_super_admin
from food_portal.services import notifications
from food_portal.services.events import EventBus
from food_portal.services.inflight import InFlightRegistry
from food_portal.api import auth, users, beneficiaries, centers, schedules, dashboard, events

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        await db_startup()
        await seed_super_admin()
    except ServerSelectionTimeoutError as e:
        logger.error(
            "MongoDB is not running. Start it with: docker compose up -d (from project root)"
        )
        raise RuntimeError(
            "MongoDB connection failed. Start MongoDB (e.g. docker compose up -d)."
        ) from e
    yield
    await db_shutdown()


app = FastAPI(
    title=settings.app_name,
    description="Admin portal for beneficiaries, pickup schedules and distribution centers",
    version="0.1.0",
    lifespan=lifespan,
)

app.state.events = EventBus()
app.state.inflight = InFlightRegistry()
notifications.register(app.state.events)


@app.exception_handler(PortalError)
async def portal_exception_handler(request: Request, exc: PortalError):
    headers = None
    if isinstance(exc, AuthError) and exc.status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


@app.exception_handler(ConnectionFailure)
async def connection_exception_handler(request: Request, exc: ConnectionFailure):
    logger.error(f"Database unavailable during {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Database unavailable, please try again", "error": "NetworkFailure"},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": errors},
    )

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(beneficiaries.router, prefix="/api/beneficiaries", tags=["Beneficiaries"])
app.include_router(centers.router, prefix="/api/centers", tags=["Distribution Centers"])
app.include_router(schedules.router, prefix="/api/schedules", tags=["Food Schedules"])
app.include_router(dashboard.router, prefix="/api/dashboard", tags=["Dashboard"])
app.include_router(events.router, prefix="/api/events", tags=["Live Events"])


@app.get("/health")
def health():
    return {"status": "ok", "app": settings.app_name}
