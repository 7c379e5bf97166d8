"""OpenTelemetry tracing decorators."""

import functools
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from opentelemetry import trace
from opentelemetry.trace import Span

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def _record_failure(span: Span, error: Exception) -> None:
    span.set_attribute("success", False)
    span.set_attribute("error.type", type(error).__name__)
    # Service errors carry a stable code; storage internals stay out of the span
    error_code = getattr(error, "error_code", None)
    if error_code is not None:
        span.set_attribute("error.code", error_code)
    span.record_exception(error)


def traced(span_name: str | None = None, service_name: str = "order-svc") -> Callable[[F], F]:
    """Decorator to wrap an async service call in an OpenTelemetry span.

    The span is marked successful or failed, and failures record the exception
    type plus the service error code when there is one. Exceptions always
    propagate.

    Args:
        span_name: Name for the span (defaults to the function's qualified name)
        service_name: Service name for the tracer and span attributes

    Returns:
        Decorated coroutine function with tracing

    Example:
        @traced("place_order")
        async def place_order(self, payload: Any) -> OrderSummary:
            ...
    """

    def decorator(func: F) -> F:
        name = span_name or func.__qualname__
        tracer = trace.get_tracer(service_name)

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            with tracer.start_as_current_span(name, record_exception=False) as span:
                span.set_attribute("service.name", service_name)
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    _record_failure(span, e)
                    raise
                span.set_attribute("success", True)
                return result

        return wrapper  # type: ignore[return-value]

    return decorator
