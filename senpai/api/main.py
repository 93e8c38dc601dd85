"""
FastAPI app assembly: logging, middleware, error handling and router wiring.
"""
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

# Configure logging
LOG_LEVEL_NAME = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL = getattr(logging, LOG_LEVEL_NAME, logging.INFO)
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)
logger.setLevel(LOG_LEVEL)
logger.info("app_startup: log_level=%s", LOG_LEVEL_NAME)


from senpai.db.database import create_schema
from senpai.errors import ServiceError
from senpai.api.auth import router as auth_router
from senpai.api.profiles import router as profiles_router
from senpai.api.availability import router as availability_router
from senpai.api.bookings import router as bookings_router
from senpai.api.meetings import router as meetings_router
from senpai.api.messages import router as messages_router
from senpai.api.notifications import router as notifications_router
from senpai.api.reports import router as reports_router
from senpai.api.reviews import router as reviews_router
from senpai.api.compliance import router as compliance_router
from senpai.api.companies import router as companies_router
from senpai.api.admin import router as admin_router
from senpai.api.internships import router as internships_router
from senpai.api.applications import router as applications_router

DEFAULT_CORS_ORIGINS = [
    "http://localhost",
    "http://localhost:3000",
    "http://localhost:8000",
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    if os.getenv("AUTO_CREATE_SCHEMA", "false").lower() == "true":
        create_schema()
        logger.info("schema_created from ORM metadata")
    yield


def _cors_origins():
    raw = os.getenv("CORS_ORIGINS", "")
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return origins or DEFAULT_CORS_ORIGINS


app = FastAPI(
    title="Senpai Career Service",
    description="API for the Senpai Career mentorship marketplace: profiles, availability, bookings, messaging and moderation.",
    version="1.0.0",
    lifespan=lifespan,
)

# Avoid implicit trailing-slash redirects for predictable URLs
app.router.redirect_slashes = False

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error("service_error path=%s detail=%s", request.url.path, exc.detail)
    return JSONResponse(exc.to_payload(), status_code=exc.status_code)


app.include_router(auth_router)
app.include_router(profiles_router)
app.include_router(availability_router)
app.include_router(bookings_router)
app.include_router(meetings_router)
app.include_router(messages_router)
app.include_router(notifications_router)
app.include_router(reports_router)
app.include_router(reviews_router)
app.include_router(compliance_router)
app.include_router(companies_router)
app.include_router(admin_router)
app.include_router(internships_router)
app.include_router(applications_router)


@app.get("/health")
def health_check():
    return {"status": "ok"}
