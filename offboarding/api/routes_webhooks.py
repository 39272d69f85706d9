# offboarding/api/routes_webhooks.py
"""
Webhook API routes.

Endpoints for managing webhook destinations and viewing delivery logs.
"""

import ipaddress
import socket
from typing import Dict, Any, Optional, List, Union
from dataclasses import asdict
from urllib.parse import urlparse

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, HttpUrl

from ..logging import get_api_logger
from ..settings import Settings
from ..webhooks import WebhookExecutor, WebhookRegistry, WebhookConfig
from .deps import get_settings, get_webhook_executor, get_webhook_registry

router = APIRouter(prefix="/webhooks", tags=["webhooks"])
logger = get_api_logger()


# SSRF protection - block private/internal IP addresses
BLOCKED_IP_RANGES = [
    ipaddress.ip_network("0.0.0.0/8"),        # "This" network
    ipaddress.ip_network("10.0.0.0/8"),       # Private
    ipaddress.ip_network("172.16.0.0/12"),    # Private
    ipaddress.ip_network("192.168.0.0/16"),   # Private
    ipaddress.ip_network("127.0.0.0/8"),      # Loopback
    ipaddress.ip_network("169.254.0.0/16"),   # Link-local
    ipaddress.ip_network("::1/128"),          # IPv6 loopback
    ipaddress.ip_network("fc00::/7"),         # IPv6 unique local
    ipaddress.ip_network("fe80::/10"),        # IPv6 link-local
]

BLOCKED_HOSTNAMES = [
    "localhost",
    "metadata.google.internal",  # GCP metadata
    "metadata",
]


def _is_blocked_ip(ip: Union[ipaddress.IPv4Address, ipaddress.IPv6Address]) -> bool:
    return any(ip.version == net.version and ip in net for net in BLOCKED_IP_RANGES)


def validate_webhook_url(url: str, allow_internal: bool = False) -> None:
    """
    Validate a webhook URL to prevent SSRF.

    Literal IPs are checked directly; hostnames are resolved and the
    resulting address is checked. A hostname that does not resolve is
    allowed, since it may only be reachable from the receiving network.

    Raises:
        HTTPException: 400 if the URL points at an internal address
    """
    if allow_internal:
        return

    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        raise HTTPException(
            status_code=400,
            detail=f"Invalid URL scheme: {parsed.scheme}. Only http/https allowed.",
        )

    hostname = parsed.hostname
    if not hostname:
        raise HTTPException(status_code=400, detail="Invalid URL: no hostname")

    if hostname.lower() in BLOCKED_HOSTNAMES:
        raise HTTPException(
            status_code=400,
            detail=f"Blocked hostname: {hostname}. Internal addresses are not allowed.",
        )

    try:
        ip = ipaddress.ip_address(hostname)
    except ValueError:
        try:
            ip = ipaddress.ip_address(socket.gethostbyname(hostname))
        except socket.gaierror:
            return

    if _is_blocked_ip(ip):
        raise HTTPException(
            status_code=400,
            detail=f"Blocked address: {hostname} resolves to {ip}. "
                   f"Internal addresses are not allowed for webhooks.",
        )


class RegisterWebhookRequest(BaseModel):
    """Request to register a webhook."""
    name: str
    url: HttpUrl
    event_types: List[str]
    headers: Optional[Dict[str, str]] = None


def _config_to_dict(config: WebhookConfig) -> Dict[str, Any]:
    return {
        "id": str(config.id),
        "name": config.name,
        "url": config.url,
        "event_types": [et.value for et in config.event_types],
        "enabled": config.enabled,
        "created_at": config.created_at.isoformat(),
    }


@router.post("", status_code=201)
def register_webhook(
    body: RegisterWebhookRequest,
    registry: WebhookRegistry = Depends(get_webhook_registry),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    url = str(body.url)
    try:
        validate_webhook_url(url, allow_internal=settings.allow_internal_webhooks)
    except HTTPException as e:
        logger.warning("webhook_url_rejected", name=body.name, url=url, reason=e.detail)
        raise

    try:
        config = registry.register(
            name=body.name,
            url=url,
            event_types=body.event_types,
            headers=body.headers,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid event type: {e}")
    return _config_to_dict(config)


@router.get("")
def list_webhooks(
    registry: WebhookRegistry = Depends(get_webhook_registry),
) -> List[Dict[str, Any]]:
    return [_config_to_dict(c) for c in registry.list_all()]


@router.get("/deliveries")
def get_deliveries(
    limit: int = 100,
    executor: WebhookExecutor = Depends(get_webhook_executor),
) -> List[Dict[str, Any]]:
    """Recent delivery attempts, newest first."""
    deliveries = []
    for delivery in executor.get_delivery_log(limit):
        record = asdict(delivery)
        record["delivery_id"] = str(delivery.delivery_id)
        record["webhook_id"] = str(delivery.webhook_id)
        record["delivered_at"] = delivery.delivered_at.isoformat()
        deliveries.append(record)
    return deliveries


@router.delete("/{webhook_id}")
def delete_webhook(
    webhook_id: str,
    registry: WebhookRegistry = Depends(get_webhook_registry),
) -> Dict[str, Any]:
    if not registry.unregister(webhook_id):
        raise HTTPException(status_code=404, detail="Webhook not found")
    return {"deleted": webhook_id}
