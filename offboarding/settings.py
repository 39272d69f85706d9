# offboarding/settings.py
"""
Application settings.
"""

import os
from dataclasses import dataclass

# Load .env file
from dotenv import load_dotenv
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


@dataclass
class Settings:
    """Application configuration."""

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_json: bool = _env_bool("LOG_JSON", "true")

    # Templates
    seed_default_templates: bool = _env_bool("SEED_DEFAULT_TEMPLATES", "true")
    default_template_id: str = os.getenv("DEFAULT_TEMPLATE_ID", "standard-offboarding")

    # Engine behaviour
    escalated_accepts_actions: bool = _env_bool("ESCALATED_ACCEPTS_ACTIONS", "true")
    escalation_clock_basis: str = os.getenv("ESCALATION_CLOCK_BASIS", "requested_at")
    resolve_delegates: bool = _env_bool("RESOLVE_DELEGATES", "true")
    allow_duplicate_approvals: bool = _env_bool("ALLOW_DUPLICATE_APPROVALS", "false")

    # Escalation sweep (0 disables the in-process loop)
    escalation_sweep_seconds: int = int(os.getenv("ESCALATION_SWEEP_SECONDS", "300"))

    # Webhooks
    webhook_timeout_seconds: float = float(os.getenv("WEBHOOK_TIMEOUT", "10"))
    # Permit webhook URLs on private, loopback or metadata addresses (dev only)
    allow_internal_webhooks: bool = _env_bool("ALLOW_INTERNAL_WEBHOOKS", "false")

    # API settings
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))


# Global settings instance
settings = Settings()
