"""Signed embed URLs for Metabase dashboards.

An embed token is a short-lived capability: whoever holds the URL can view
the dashboard until ``exp``. Tokens are minted per request, never stored and
never written to the log.
"""
import time
import logging
from typing import Optional, Tuple

import jwt

from cockpit.core import config
from cockpit.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

EMBED_ALGORITHM = "HS256"
EMBED_PATH = "/embed/dashboard/"
EMBED_FRAGMENT = "#bordered=true&titled=true"
DEFAULT_EXPIRATION_MINUTES = 10


def _current_timestamp() -> int:
    return int(time.time())


def _embed_settings():
    site_url = (config.METABASE_SITE_URL or "").rstrip("/")
    secret_key = config.METABASE_SECRET_KEY
    missing = []
    if not site_url:
        missing.append("METABASE_SITE_URL")
    if not secret_key:
        missing.append("METABASE_SECRET_KEY")
    if missing:
        raise ConfigurationError(f"Missing required configuration: {', '.join(missing)}")
    return site_url, secret_key


def validate_dashboard_id(dashboard_id) -> int:
    if isinstance(dashboard_id, bool) or not isinstance(dashboard_id, int) or dashboard_id <= 0:
        raise ValueError("Invalid dashboard ID")
    return dashboard_id


def sign_embed_token(payload: dict, secret_key: str) -> str:
    return jwt.encode(payload, secret_key, algorithm=EMBED_ALGORITHM)


def decode_embed_token(token: str, secret_key: str) -> dict:
    """Verify signature and expiry; raises jwt.InvalidTokenError subclasses."""
    return jwt.decode(token, secret_key, algorithms=[EMBED_ALGORITHM])


def build_embed_payload(dashboard_id: int, expires_at: int, params: Optional[dict] = None) -> dict:
    return {
        "resource": {"dashboard": dashboard_id},
        "params": dict(params or {}),
        "exp": expires_at,
    }


def issue_embed_url(dashboard_id: int, expiration_minutes: float = DEFAULT_EXPIRATION_MINUTES) -> Tuple[str, int]:
    """Mint a fresh token for `dashboard_id`; returns the embed URL and its ``exp``."""
    validate_dashboard_id(dashboard_id)
    if expiration_minutes is None or expiration_minutes <= 0:
        raise ValueError("Expiration minutes must be greater than 0")
    validity_seconds = int(expiration_minutes * 60)
    if validity_seconds < 1:
        raise ValueError("Expiration must be at least one second")

    site_url, secret_key = _embed_settings()
    # Floored clock plus whole seconds: exp is in the future and never past now + validity
    expires_at = _current_timestamp() + validity_seconds
    token = sign_embed_token(build_embed_payload(dashboard_id, expires_at), secret_key)
    logger.info("Issued embed token for dashboard %d (exp=%d)", dashboard_id, expires_at)
    return f"{site_url}{EMBED_PATH}{token}{EMBED_FRAGMENT}", expires_at


def generate_iframe_url(dashboard_id: int, expiration_minutes: float = DEFAULT_EXPIRATION_MINUTES) -> str:
    url, _ = issue_embed_url(dashboard_id, expiration_minutes)
    return url


def refresh_dashboard_url(dashboard_id: int) -> Tuple[str, int]:
    return issue_embed_url(dashboard_id, config.METABASE_EMBED_MINUTES)


def token_from_url(embed_url: str) -> str:
    """Extract the signed token segment from an embed URL."""
    _, sep, rest = embed_url.partition(EMBED_PATH)
    if not sep:
        raise ValueError("Not a dashboard embed URL")
    return rest.split("#", 1)[0]
