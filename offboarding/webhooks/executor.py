# offboarding/webhooks/executor.py
"""
Webhook executor - fires HTTP POST to registered destinations.

Plugged into the approval engine as an event listener, this is how
"approval required" and "escalated" notices leave the process.
"""

import threading
import httpx
from typing import Dict, Any, List, Optional
from uuid import UUID, uuid4
from datetime import datetime, timezone
from dataclasses import dataclass, asdict

from ..approvals.events import ApprovalEvent, ApprovalListener
from ..logging import get_webhook_logger
from .registry import WebhookRegistry, WebhookConfig

logger = get_webhook_logger()


@dataclass
class WebhookPayload:
    """Standard webhook payload structure."""
    event_id: str
    event_type: str
    timestamp: str
    request_id: str
    data: Dict[str, Any]


@dataclass
class WebhookDelivery:
    """Record of a webhook delivery attempt."""
    delivery_id: UUID
    webhook_id: UUID
    webhook_name: str
    url: str
    event_type: str
    payload: Dict[str, Any]
    response_status: Optional[int]
    response_body: Optional[str]
    success: bool
    error: Optional[str]
    delivered_at: datetime


class WebhookExecutor:
    """
    Delivers approval events to registered webhooks.

    Failures are recorded in the delivery log and never raised, so a dead
    endpoint cannot affect approval transitions.
    """

    def __init__(
        self,
        registry: WebhookRegistry,
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
        max_log_size: int = 1000,
    ):
        self.registry = registry
        self.timeout = timeout_seconds
        self.client = httpx.Client(timeout=timeout_seconds, transport=transport)
        self.max_log_size = max_log_size
        self._log: List[WebhookDelivery] = []
        self._log_lock = threading.Lock()

    def as_listener(self) -> ApprovalListener:
        """Callback suitable for ApprovalEngine.subscribe."""
        return self.fire_event

    def fire_event(self, event: ApprovalEvent) -> List[WebhookDelivery]:
        """
        Fire webhooks subscribed to an approval event.

        Args:
            event: Event published by the engine

        Returns:
            List of delivery records
        """
        payload = WebhookPayload(
            event_id=str(uuid4()),
            event_type=event.event_type.value,
            timestamp=datetime.now(timezone.utc).isoformat(),
            request_id=event.request_id,
            data={
                "session_id": event.session_id,
                "level": event.level,
                "approver_ids": list(event.approver_ids),
                "occurred_at": event.timestamp.isoformat(),
                **event.data,
            },
        )

        webhooks = self.registry.get_webhooks_for_event(event.event_type)
        if webhooks:
            logger.info(
                "firing_webhooks",
                event_type=payload.event_type,
                webhook_count=len(webhooks),
                event_id=payload.event_id,
            )

        deliveries = [self._deliver(webhook, payload) for webhook in webhooks]

        with self._log_lock:
            self._log.extend(deliveries)
            if len(self._log) > self.max_log_size:
                del self._log[:len(self._log) - self.max_log_size]

        return deliveries

    def _deliver(
        self,
        webhook: WebhookConfig,
        payload: WebhookPayload,
    ) -> WebhookDelivery:
        """Deliver payload to a single webhook destination."""
        delivery_id = uuid4()
        payload_dict = asdict(payload)

        headers = {
            "Content-Type": "application/json",
            "User-Agent": "Offboarding-Approvals/1.0",
            "X-Webhook-Event": payload.event_type,
            "X-Webhook-Delivery-ID": str(delivery_id),
            **webhook.headers,
        }

        def record(status, body, success, error) -> WebhookDelivery:
            return WebhookDelivery(
                delivery_id=delivery_id,
                webhook_id=webhook.id,
                webhook_name=webhook.name,
                url=webhook.url,
                event_type=payload.event_type,
                payload=payload_dict,
                response_status=status,
                response_body=body,
                success=success,
                error=error,
                delivered_at=datetime.now(timezone.utc),
            )

        try:
            response = self.client.post(webhook.url, json=payload_dict, headers=headers)
            success = 200 <= response.status_code < 300

            logger.info(
                "webhook_delivery_complete",
                webhook_id=str(webhook.id),
                webhook_name=webhook.name,
                status_code=response.status_code,
                success=success,
            )
            return record(
                response.status_code,
                response.text[:500] if response.text else None,
                success,
                None if success else f"HTTP {response.status_code}",
            )

        except httpx.TimeoutException as e:
            logger.warning(
                "webhook_delivery_timeout",
                webhook_id=str(webhook.id),
                url=webhook.url,
                error=str(e),
            )
            return record(None, None, False, f"Timeout: {e}")

        except httpx.HTTPError as e:
            logger.error(
                "webhook_delivery_failed",
                webhook_id=str(webhook.id),
                url=webhook.url,
                error=str(e),
            )
            return record(None, None, False, str(e))

    def get_delivery_log(self, limit: int = 100) -> List[WebhookDelivery]:
        """Most recent deliveries first."""
        with self._log_lock:
            return list(reversed(self._log[-limit:]))

    def close(self):
        """Close HTTP client."""
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
