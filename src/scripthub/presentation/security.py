from __future__ import annotations

import hashlib
import hmac
import logging

from fastapi import Depends, Header, HTTPException, Request, status

from src.setup.api_config import ApiSettings, get_api_settings

logger = logging.getLogger(__name__)

SIGNATURE_PREFIX = "sha256="


def sign_body(body: bytes, secret: str) -> str:
    """Header value a trusted worker sends for ``body``."""
    digest = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


async def verify_signature(
    request: Request,
    x_signature: str | None = Header(default=None),
    settings: ApiSettings = Depends(get_api_settings),
) -> None:
    """Reject callbacks whose body was not signed with the shared secret."""
    secret = settings.CALLBACK_HMAC_SECRET
    if not secret:
        logger.error("Callback secret is not configured; refusing callback")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Callback verification is not configured.",
        )
    if not x_signature:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing signature."
        )

    expected = sign_body(await request.body(), secret)
    if not hmac.compare_digest(expected, x_signature.strip()):
        logger.warning("Invalid callback signature", extra={"path": request.url.path})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid signature."
        )
