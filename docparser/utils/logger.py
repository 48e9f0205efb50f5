"""
Structured logging for the Documentation Map Parser.

Every entry carries the request trace id, and every pipeline stage logs
through a LayerLogger bound to its layer name, so a single parse can be
followed from fetch through strategy selection to the validators.
"""
import uuid
import logging
import structlog
from contextvars import ContextVar
from typing import Any, Dict, Optional

from docparser.config import config

# Context variable for trace ID
trace_id_var: ContextVar[str] = ContextVar("trace_id", default="")


def _new_trace_id() -> str:
    return uuid.uuid4().hex[:8]


def get_trace_id() -> str:
    """Get current trace ID or generate new one."""
    trace_id = trace_id_var.get()
    if not trace_id:
        trace_id = _new_trace_id()
        trace_id_var.set(trace_id)
    return trace_id


def set_trace_id(trace_id: Optional[str] = None) -> str:
    """Start a new trace (one per API request)."""
    new_trace_id = trace_id or _new_trace_id()
    trace_id_var.set(new_trace_id)
    return new_trace_id


def add_trace_id(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Processor to add trace ID to all log entries."""
    event_dict.setdefault("trace_id", get_trace_id())
    return event_dict


def configure_logging(level: Optional[str] = None, fmt: Optional[str] = None):
    """
    Configure structlog.

    Args:
        level: Minimum level name, defaults to LOG_LEVEL
        fmt: "json" or "console", defaults to LOG_FORMAT (console when DEBUG is on)
    """
    level = (level or config.LOG_LEVEL).upper()
    fmt = fmt or ("console" if config.DEBUG else config.LOG_FORMAT)

    processors = [
        structlog.contextvars.merge_contextvars,
        add_trace_id,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if fmt == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level, logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger instance with the given name."""
    return structlog.get_logger(name)


class LayerLogger:
    """
    Logger for one pipeline stage (fetcher, strategy, validator chain, cache).

    The layer name is bound once; extra context such as the URL being parsed
    can be bound with bind() to get a child logger.
    """

    def __init__(self, layer_name: str, **context):
        self.layer_name = layer_name
        self.logger = get_logger(layer_name).bind(layer=layer_name, **context)

    def bind(self, **context) -> "LayerLogger":
        child = LayerLogger.__new__(LayerLogger)
        child.layer_name = self.layer_name
        child.logger = self.logger.bind(**context)
        return child

    def log_decision(
        self,
        decision: str,
        reason: str,
        url: Optional[str] = None,
        **extra
    ):
        """Log a decision made by this layer."""
        self.logger.info(
            "decision_made",
            decision=decision,
            reason=reason,
            url=url,
            **extra
        )

    def log_action(
        self,
        action: str,
        status: str = "started",
        **extra
    ):
        """Log an action being performed."""
        self.logger.info(
            f"action_{status}",
            action=action,
            **extra
        )

    def log_fallback(
        self,
        from_source: str,
        to_source: str,
        reason: str,
        **extra
    ):
        """Log a move to the next fetch source or strategy."""
        self.logger.warning(
            "fallback_triggered",
            from_source=from_source,
            to_source=to_source,
            reason=reason,
            **extra
        )

    def log_error(
        self,
        error: str,
        error_type: str = "unknown",
        **extra
    ):
        """Log an error with full context."""
        self.logger.error(
            "error_occurred",
            error=error,
            error_type=error_type,
            **extra
        )

    def log_http_response(
        self,
        url: str,
        status_code: Optional[int],
        result: str,
        **extra
    ):
        """Log a single HTTP response seen while fetching (including redirect hops)."""
        self.logger.info(
            "http_response",
            url=url,
            status_code=status_code,
            result=result,
            **extra
        )

    def log_extraction(
        self,
        strategy: str,
        nodes: int,
        edges: int,
        confidence: float,
        **extra
    ):
        """Log the outcome of a strategy run."""
        self.logger.info(
            "extraction_completed",
            strategy=strategy,
            nodes=nodes,
            edges=edges,
            confidence_score=confidence,
            **extra
        )

    def log_validation(
        self,
        stage: str,
        before: int,
        after: int,
        **extra
    ):
        """Log how many nodes a validator stage kept."""
        self.logger.info(
            "validation_applied",
            stage=stage,
            nodes_before=before,
            nodes_after=after,
            nodes_removed=before - after,
            **extra
        )


# Initialize logging on module import
configure_logging()
