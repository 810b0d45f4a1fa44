"""
Webhook ingress for GitHub repository events.

Verifies delivery signatures and turns pull request events into handoff
lifecycle calls.
"""

from .pull_request import handle_pull_request_event
from .signature import WebhookSecretMissing, compute_signature, verify_webhook_signature

__all__ = [
    "handle_pull_request_event",
    "WebhookSecretMissing",
    "compute_signature",
    "verify_webhook_signature",
]
