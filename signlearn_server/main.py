"""
Main FastAPI application entry point.
"""
import os

import logfire
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from signlearn_server.app.api.v1.api import api_router
from signlearn_server.core.config.general_config import settings
from signlearn_server.core.security.origin_guard import get_origin_guard

from dotenv import load_dotenv

load_dotenv()

LOGFIRE_TOKEN = os.getenv("LOGFIRE_TOKEN")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logfire.configure(
        token=LOGFIRE_TOKEN,
        service_name="signlearn-payments",
        send_to_logfire="if-token-present",
    )
    logfire.instrument_fastapi(app)
    logfire.instrument_httpx()
    logfire.info("Starting up FastAPI application...")
    yield
    # Shutdown
    logfire.info("Shutting down FastAPI application...")


def create_application() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description=settings.DESCRIPTION,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        lifespan=lifespan,
    )

    # CORS headers only for origins the origin guard trusts
    guard = get_origin_guard()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=sorted(guard.allowed_origins),
        allow_origin_regex=guard.origin_regex,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    )

    # Include API router
    app.include_router(api_router, prefix=settings.API_V1_STR)

    return app


app = create_application()


@app.get("/")
def read_root():
    return {"message": "Welcome to the SignLearn payments API. Visit /docs for API documentation."}
