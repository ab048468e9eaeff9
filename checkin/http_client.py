"""
http_client.py - HTTP Client for the Wix REST API
==================================================
This module handles all HTTP communication with Wix, including:
- Setting the API-key headers on a shared session
- Making POST query requests with automatic retry on transient failures
- Turning every failure into a TransportError carrying the remote error text

Features:
---------
- Automatic retry on server errors (429, 500, 502, 503, 504) and timeouts
- Exponential backoff between retries
- API key + site id headers (no OAuth flow)
- Configurable timeouts
"""

import json
import logging
import time
from typing import Any, Dict

import requests

from .config import Settings
from .errors import TransportError

logger = logging.getLogger(__name__)


# =============================================================================
# RETRY CONFIGURATION
# =============================================================================

# 408 = Request Timeout, 429 = Too Many Requests, 5xx = server side trouble
RETRY_STATUSES = (408, 429, 500, 502, 503, 504)

# Total attempts = 1 initial + MAX_RETRIES
MAX_RETRIES = 2

# Wait time = BACKOFF_FACTOR * (2 ** attempt_number)
BACKOFF_FACTOR = 0.5

# How much of an error body to keep in messages
BODY_SNIPPET = 300


# =============================================================================
# HTTP CLIENT CLASS
# =============================================================================

class HttpClient:
    """
    HTTP client for the Wix REST API.

    Usage:
        client = HttpClient(settings)
        data = client.post_json("/members/v1/members/query", {"paging": {"limit": 10}})
        client.close()

    Every Wix query endpoint used here is a POST with a JSON body, so that is
    the only verb exposed.
    """

    def __init__(self, settings: Settings, session: requests.Session | None = None):
        """
        Initialize the HTTP client.

        Args:
            settings: Configuration object with base URL, timeout and credentials
            session: Optional pre-built session (tests pass a fake one)

        Raises:
            RuntimeError: If the API key or site id is missing
        """
        settings.require_api()

        self.settings = settings
        self.s = session or requests.Session()
        self.base = settings.base_url
        self.timeout = settings.timeout_sec

        self.s.headers.update({
            "Authorization": settings.api_key,  # Wix API keys go in raw, no "Bearer"
            "wix-site-id": settings.site_id,
            "Content-Type": "application/json",
            "Accept": "application/json",
        })

    # -------------------------------------------------------------------------
    # API REQUEST METHODS
    # -------------------------------------------------------------------------

    def post_json(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        POST a JSON body to an API endpoint with automatic retry.

        Args:
            path: The API endpoint path (e.g., "/members/v1/members/query")
            payload: The JSON request body

        Returns:
            The decoded JSON response (an empty dict for an empty 2xx body)

        Raises:
            TransportError: On network failure after all retries, on a non-2xx
                status, or when a 2xx body isn't valid JSON
        """
        url = f"{self.base}{path}"
        logger.debug(f"POST {path} {json.dumps(payload)}")

        for attempt in range(MAX_RETRIES + 1):
            try:
                r = self.s.post(url, json=payload, timeout=self.timeout)
            except requests.RequestException as e:
                # Timeout, connection refused, DNS failure, etc.
                if attempt < MAX_RETRIES:
                    self._backoff(path, "Network Error", attempt)
                    continue
                raise TransportError(
                    f"Network error calling {path}: {type(e).__name__}: {e}",
                    path=path,
                ) from e

            if r.status_code in RETRY_STATUSES and attempt < MAX_RETRIES:
                self._backoff(path, str(r.status_code), attempt)
                continue

            return self._decode(path, r)

        # The loop always returns or raises on its last attempt
        raise TransportError(f"Max retries exceeded calling {path}", path=path)

    def _backoff(self, path: str, reason: str, attempt: int):
        wait_time = BACKOFF_FACTOR * (2 ** attempt)
        logger.warning(
            f"[{reason}] Retrying {path} in {wait_time:.2f}s "
            f"(Attempt {attempt + 1}/{MAX_RETRIES})..."
        )
        time.sleep(wait_time)

    def _decode(self, path: str, r: requests.Response) -> Dict[str, Any]:
        body = r.text or ""

        if not 200 <= r.status_code < 300:
            raise TransportError(
                f"Wix API error ({r.status_code}) calling {path}: {body[:BODY_SNIPPET].strip()}",
                status=r.status_code,
                body=body[:BODY_SNIPPET],
                path=path,
            )

        if not body.strip():
            return {}

        try:
            data = r.json()
        except ValueError as e:
            raise TransportError(
                f"Invalid JSON response from {path}: {e}",
                status=r.status_code,
                body=body[:BODY_SNIPPET],
                path=path,
            ) from e

        logger.debug(f"Response from {path}: {str(data)[:500]}")
        return data if isinstance(data, dict) else {"items": data}

    # -------------------------------------------------------------------------
    # CLEANUP METHODS
    # -------------------------------------------------------------------------

    def close(self):
        """Close the HTTP session and release its connections."""
        self.s.close()
