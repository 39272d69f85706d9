# offboarding/webhooks/registry.py
"""
Webhook registry - manages configured webhook destinations.

Webhooks subscribe to approval event types, for example:
- APPROVAL_REQUIRED: approvers were asked for a decision
- REQUEST_ESCALATED: a level timed out and went to its fallback approver
- REQUEST_APPROVED / REQUEST_REJECTED: a request reached a final status
"""

import threading
from typing import List, Dict, Optional
from uuid import UUID, uuid4
from datetime import datetime, timezone
from dataclasses import dataclass, replace

from ..approvals.events import ApprovalEventType


@dataclass(frozen=True)
class WebhookConfig:
    """Configuration for a webhook destination."""
    id: UUID
    name: str
    url: str
    event_types: List[ApprovalEventType]
    headers: Dict[str, str]
    enabled: bool
    created_at: datetime


class WebhookRegistry:
    """
    Manages webhook configurations.

    Configs live in memory for the lifetime of the registry instance.
    """

    def __init__(self):
        self._webhooks: Dict[str, WebhookConfig] = {}
        self._lock = threading.Lock()

    def register(
        self,
        name: str,
        url: str,
        event_types: List[str],
        headers: Optional[Dict[str, str]] = None,
    ) -> WebhookConfig:
        """
        Register a new webhook destination.

        Args:
            name: Human-readable name for the webhook
            url: Destination URL
            event_types: Event type names to subscribe to
            headers: Optional custom headers (e.g., Authorization)

        Returns:
            Created webhook config

        Raises:
            ValueError: if an event type name is unknown
        """
        config = WebhookConfig(
            id=uuid4(),
            name=name,
            url=url,
            event_types=[ApprovalEventType(et) for et in event_types],
            headers=headers or {},
            enabled=True,
            created_at=datetime.now(timezone.utc),
        )

        with self._lock:
            self._webhooks[str(config.id)] = config
        return config

    def unregister(self, webhook_id: str) -> bool:
        with self._lock:
            return self._webhooks.pop(webhook_id, None) is not None

    def get_webhooks_for_event(self, event_type: ApprovalEventType) -> List[WebhookConfig]:
        """Enabled webhooks subscribed to an event type."""
        with self._lock:
            return [
                config for config in self._webhooks.values()
                if config.enabled and event_type in config.event_types
            ]

    def list_all(self) -> List[WebhookConfig]:
        with self._lock:
            return list(self._webhooks.values())

    def get(self, webhook_id: str) -> Optional[WebhookConfig]:
        with self._lock:
            return self._webhooks.get(webhook_id)

    def set_enabled(self, webhook_id: str, enabled: bool) -> bool:
        """Enable or disable a webhook without removing it."""
        with self._lock:
            config = self._webhooks.get(webhook_id)
            if config is None:
                return False
            self._webhooks[webhook_id] = replace(config, enabled=enabled)
            return True
