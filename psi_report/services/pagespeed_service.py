# psi_report/services/pagespeed_service.py
import logging
from typing import Any, AsyncIterator, Dict

import httpx
from fastapi import Depends

from psi_report.core.config import Settings, get_settings
from psi_report.core.errors import ConfigurationError, ParseError, TransportError, UpstreamError

logger = logging.getLogger(__name__)

# Mobile-first audit
STRATEGY = "mobile"


async def get_http_client(settings: Settings = Depends(get_settings)) -> AsyncIterator[httpx.AsyncClient]:
    """Yields an HTTP client scoped to one proxy request."""
    async with httpx.AsyncClient(timeout=settings.PSI_TIMEOUT_SECONDS, follow_redirects=True) as client:
        yield client


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


async def get_pagespeed_insights(client: httpx.AsyncClient, url: str, settings: Settings) -> Dict[str, Any]:
    """
    Calls the Google PageSpeed Insights API once, with the server-held key.

    Args:
        client: The HTTP client to send the request with.
        url: The target website URL, passed through as given.
        settings: Supplies the API key and the upstream endpoint.

    Returns:
        The upstream JSON body, unchanged.

    Raises:
        ConfigurationError: If PSI_API_KEY is not set. No request is made.
        TransportError: If the request could not be completed.
        ParseError: If a successful response is not valid JSON.
        UpstreamError: If PSI answers with a non-success status.
    """
    if not settings.PSI_API_KEY:
        raise ConfigurationError("Server missing PSI_API_KEY env var")

    params = {"url": url, "strategy": STRATEGY, "key": settings.PSI_API_KEY}

    logger.info("Running %s PSI audit for %s", STRATEGY, url)
    try:
        response = await client.get(settings.PSI_API_ENDPOINT, params=params)
    except (httpx.RequestError, httpx.InvalidURL) as e:
        logger.warning("PSI request for %s failed: %r", url, e)
        raise TransportError(f"Network error while calling PageSpeed API: {str(e) or type(e).__name__}") from e

    if not response.is_success:
        logger.warning("PSI returned %s for %s", response.status_code, url)
        raise UpstreamError(
            "PSI request failed",
            status_code=response.status_code,
            details=_response_body(response),
        )

    try:
        data = response.json()
    except ValueError as e:
        raise ParseError("Invalid response from PageSpeed API: body is not JSON") from e

    logger.info("PSI audit for %s completed", url)
    return data
