"""
Logfire tracing for the ProjectBrain server.

``initialize_logfire`` configures Logfire from ``settings.logfire`` and
instruments FastAPI, SQLAlchemy and HTTPX (Mailgun calls). The ``log_*``
helpers below record domain events; they are no-ops until Logfire has been
configured so tests and local runs never ship telemetry.
"""

import logging
from typing import Any, Dict, Optional

import logfire
from fastapi import FastAPI

from projectbrain.server.core.config import LogfireConfig, settings

logger = logging.getLogger(__name__)

_configured = False


def initialize_logfire(app: Optional[FastAPI] = None, config: Optional[LogfireConfig] = None) -> bool:
    """
    Configure Logfire and enable the requested instrumentations.

    Args:
        app: FastAPI application to instrument (optional)
        config: Overrides ``settings.logfire``

    Returns:
        True when Logfire is active
    """
    global _configured
    cfg = config or settings.logfire
    if not cfg.enabled:
        logger.info("Logfire monitoring is disabled. Set LOGFIRE_ENABLED=true to enable.")
        return False
    if not cfg.token:
        logger.warning("LOGFIRE_ENABLED is set but LOGFIRE_TOKEN is missing, traces will not be sent")
        return False

    logfire.configure(token=cfg.token, service_name=cfg.service_name, environment=cfg.environment)
    _configured = True

    instrumentations = {
        "SQLAlchemy": (cfg.trace_sqlalchemy, logfire.instrument_sqlalchemy, {}),
        "HTTPX": (cfg.trace_httpx, logfire.instrument_httpx, {}),
        "FastAPI": (cfg.trace_fastapi and app is not None, logfire.instrument_fastapi, {"app": app}),
    }
    for name, (wanted, instrument, kwargs) in instrumentations.items():
        if not wanted:
            continue
        try:
            instrument(**kwargs)
            logger.info(f"Logfire: {name} instrumentation enabled")
        except (ImportError, RuntimeError) as e:
            # The matching opentelemetry extra is not installed
            logger.warning(f"Failed to instrument {name}: {e}")

    logger.info(f"Logfire monitoring initialized: environment={cfg.environment}, service={cfg.service_name}")
    return True


def is_enabled() -> bool:
    return _configured


def _emit(level: str, message: str, **attributes: Any) -> None:
    if not _configured:
        return
    getattr(logfire, level)(message, **attributes)


def log_api_request(method: str, path: str, status_code: int, duration_ms: float) -> None:
    _emit("info", "API request completed", method=method, path=path, status_code=status_code, duration_ms=duration_ms)


def log_agent_interaction(user_id: str, workflow_id: str, status: str, tool_count: int) -> None:
    """
    Record the outcome of one agent interaction.

    Args:
        user_id: The calling user
        workflow_id: The workflow that handled the interaction
        status: Final workflow status
        tool_count: Number of tools executed
    """
    _emit(
        "info",
        "Agent interaction finished",
        user_id=user_id,
        workflow_id=workflow_id,
        status=status,
        tool_count=tool_count,
    )


def log_llm_call(model: str, tokens_used: int) -> None:
    _emit("info", "LLM call completed", model=model, tokens_used=tokens_used)


def log_stripe_event(event_type: str, subscription_id: Optional[str]) -> None:
    """Record a Stripe webhook that re-synced (or tried to re-sync) a subscription."""
    _emit("info", "Stripe event processed", event_type=event_type, subscription_id=subscription_id)


def log_error(error_type: str, error_message: str, context: Optional[Dict[str, Any]] = None) -> None:
    _emit("error", "{error_type}: {error_message}", error_type=error_type, error_message=error_message, **(context or {}))
