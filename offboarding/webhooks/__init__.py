"""
Webhook module for outbound notifications.

Fires HTTP POST requests when approval events occur.
"""

from .executor import WebhookExecutor, WebhookDelivery
from .registry import WebhookRegistry, WebhookConfig

__all__ = ["WebhookExecutor", "WebhookDelivery", "WebhookRegistry", "WebhookConfig"]
