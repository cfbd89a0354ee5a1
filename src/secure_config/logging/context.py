"""Context variables for structured logging."""

from contextvars import ContextVar

_environment: ContextVar[str] = ContextVar("environment", default="")
_application: ContextVar[str] = ContextVar("application", default="")
_trace_id: ContextVar[str] = ContextVar("trace_id", default="")


def set_log_context(
    environment: str | None = None,
    application: str | None = None,
    trace_id: str | None = None,
) -> None:
    if environment is not None:
        _environment.set(environment)
    if application is not None:
        _application.set(application)
    if trace_id is not None:
        _trace_id.set(trace_id)


def get_log_context() -> dict[str, str]:
    return {
        "environment": _environment.get(),
        "application": _application.get(),
        "trace_id": _trace_id.get(),
    }


def clear_log_context() -> None:
    _environment.set("")
    _application.set("")
    _trace_id.set("")


class LogContext:
    """
    Context manager for temporary log context.

    Usage:
        with LogContext(trace_id=request_id):
            # All logs in this block carry trace_id
            await handle(request)
    """

    def __init__(
        self,
        environment: str | None = None,
        application: str | None = None,
        trace_id: str | None = None,
    ):
        self.new_context = {
            "environment": environment,
            "application": application,
            "trace_id": trace_id,
        }
        self.old_context: dict[str, str] = {}

    def __enter__(self) -> "LogContext":
        self.old_context = get_log_context()
        set_log_context(**self.new_context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        set_log_context(**self.old_context)
        return False
