# craftworks/webhooks/signature.py
"""
GitHub webhook signature verification.

GitHub signs each delivery with HMAC-SHA256 of the raw body and sends it
as `X-Hub-Signature-256: sha256=<hex>`.
"""

import hashlib
import hmac
from typing import Optional, Union


SIGNATURE_HEADER = "X-Hub-Signature-256"
SIGNATURE_PREFIX = "sha256="


class WebhookSecretMissing(Exception):
    """Raised when no webhook secret is configured."""
    pass


def compute_signature(payload: Union[str, bytes], secret: str) -> str:
    """Signature header value for a payload."""
    body = payload.encode("utf-8") if isinstance(payload, str) else payload
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return SIGNATURE_PREFIX + digest


def verify_webhook_signature(
    payload: Union[str, bytes],
    signature: Optional[str],
    secret: Optional[str],
) -> bool:
    """
    Verify a webhook payload signature.

    Args:
        payload: Raw request body
        signature: Value of the X-Hub-Signature-256 header
        secret: Webhook secret

    Returns:
        True if the signature matches

    Raises:
        WebhookSecretMissing: If no secret is configured
    """
    if not secret:
        raise WebhookSecretMissing("GH_WEBHOOK_SECRET is required")

    if not signature:
        return False

    expected = compute_signature(payload, secret)
    return hmac.compare_digest(signature.encode("utf-8"), expected.encode("utf-8"))
