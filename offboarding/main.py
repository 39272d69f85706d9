# offboarding/main.py
"""
Offboarding Approvals - Main Application

Multi-level sign-off for offboarding tasks: ordered approval levels with
quorums, per-request delegation, and escalation of stalled levels.
"""

import asyncio
from contextlib import asynccontextmanager, suppress
from typing import AsyncGenerator, Optional

from fastapi import FastAPI

from .settings import Settings, settings as default_settings
from .logging import configure_logging, get_logger
from .approvals import (
    ApprovalEngine,
    ApproverDirectory,
    EngineOptions,
    TemplateRegistry,
    seed_defaults,
)
from .webhooks import WebhookExecutor, WebhookRegistry
from .api import approvals_router, templates_router, webhooks_router

logger = get_logger(__name__)


def build_engine(settings: Settings) -> ApprovalEngine:
    """Engine with its own registry and directory, seeded if configured."""
    templates = TemplateRegistry()
    directory = ApproverDirectory()
    if settings.seed_default_templates:
        seed_defaults(templates, directory)
    return ApprovalEngine(
        templates=templates,
        directory=directory,
        options=EngineOptions.from_settings(settings),
    )


async def run_escalation_sweeps(engine: ApprovalEngine, interval_seconds: int) -> None:
    """Call the escalation sweep every `interval_seconds` until cancelled."""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await asyncio.to_thread(engine.check_escalations)
        except Exception as e:
            logger.error("escalation_sweep_failed", exc_info=True, error=str(e))


def create_app(
    settings: Optional[Settings] = None,
    engine: Optional[ApprovalEngine] = None,
    webhook_executor: Optional[WebhookExecutor] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Configuration (module settings if omitted)
        engine: Pre-built engine, mainly for tests
        webhook_executor: Pre-built executor, mainly for tests

    Returns:
        Configured FastAPI app
    """
    settings = settings or default_settings
    engine = engine or build_engine(settings)
    if webhook_executor is None:
        webhook_executor = WebhookExecutor(
            WebhookRegistry(),
            timeout_seconds=settings.webhook_timeout_seconds,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        configure_logging(level=settings.log_level, json_output=settings.log_json)
        logger.info(
            "approvals_service_starting",
            templates=len(engine.list_approval_templates()),
            sweep_seconds=settings.escalation_sweep_seconds,
        )
        webhook_listener = webhook_executor.as_listener()
        engine.subscribe(webhook_listener)

        sweep_task = None
        if settings.escalation_sweep_seconds > 0:
            sweep_task = asyncio.create_task(
                run_escalation_sweeps(engine, settings.escalation_sweep_seconds)
            )

        yield

        if sweep_task is not None:
            sweep_task.cancel()
            with suppress(asyncio.CancelledError):
                await sweep_task
        engine.unsubscribe(webhook_listener)
        webhook_executor.close()
        logger.info("approvals_service_stopped")

    app = FastAPI(
        title="Offboarding Approvals",
        description="""
        Multi-level approval workflows for offboarding tasks.

        - Templates define ordered levels, each with a quorum of named approvers
        - Requests copy a template's levels and move through them one at a time
        - Approvers can delegate their decision on a single request
        - Stalled levels escalate to a fallback approver on a timer
        """,
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.webhook_registry = webhook_executor.registry
    app.state.webhook_executor = webhook_executor

    app.include_router(approvals_router)
    app.include_router(templates_router)
    app.include_router(webhooks_router)

    @app.get("/health")
    async def health():
        return {
            "status": "healthy",
            "templates": len(engine.list_approval_templates()),
            "requests": len(engine.store.ids()),
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=default_settings.api_host, port=default_settings.api_port)
