# psi_report/main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from psi_report import __version__
from psi_report.core.config import Settings, get_settings
from psi_report.core.errors import ReportError, ValidationError
from psi_report.core.logging_config import configure_logging
from psi_report.models import ProxyError
from psi_report.services import pagespeed_service

logger = logging.getLogger(__name__)

# Repeated demo runs of the same URL can be served from cache
CACHE_CONTROL = "public, max-age=300"


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(get_settings().LOG_LEVEL)
    yield


# --- FastAPI App Initialization ---
app = FastAPI(
    title="PSI Report Proxy",
    description="Forwards PageSpeed Insights requests so the API key never reaches the browser.",
    version=__version__,
    lifespan=lifespan,
)

# --- CORS Middleware ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)


# --- Error Handling ---
@app.exception_handler(ReportError)
async def report_error_handler(request: Request, exc: ReportError) -> JSONResponse:
    logger.warning("%s %s -> %s %s", request.method, request.url.path, exc.status_code, exc.message)
    body = ProxyError(error=exc.message, details=exc.details)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(exclude_none=True))


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    body = ProxyError(error=str(exc) or "Internal error")
    return JSONResponse(status_code=500, content=body.model_dump(exclude_none=True))


# --- API Endpoints ---
@app.get("/api/psi")
async def pagespeed_proxy(
    url: Optional[str] = None,
    settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(pagespeed_service.get_http_client),
):
    """
    Runs a mobile PageSpeed Insights audit for `url` and relays the JSON report.
    """
    if not url:
        raise ValidationError("Missing ?url=")

    data = await pagespeed_service.get_pagespeed_insights(client, url, settings)
    return JSONResponse(content=data, headers={"Cache-Control": CACHE_CONTROL})

# A simple root endpoint to confirm the API is running
@app.get("/")
def read_root():
    return {"service": "psi-report", "status": "ok"}
