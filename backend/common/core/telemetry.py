import functools
import asyncio
import logging
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.resources import Resource, SERVICE_NAME, SERVICE_VERSION
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from common.core.config import settings

# Configure logging at module level
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    force=True,  # This ensures it overrides any existing configuration
)


# Global flag to ensure initialization only happens once
_initialized = False
tracer = trace.get_tracer(settings.otel_service_name)


def _initialize_telemetry():
    """Initialize telemetry once and only once."""
    global _initialized, tracer

    if _initialized:
        return

    resource = Resource(
        attributes={
            SERVICE_NAME: settings.otel_service_name,
            SERVICE_VERSION: settings.otel_service_version,
            "deployment.environment": settings.environment.value,
        }
    )

    provider = TracerProvider(resource=resource)
    # Without an endpoint spans are still created but never exported
    if settings.otel_exporter_endpoint:
        headers = {}
        if settings.otel_exporter_token:
            headers["Authorization"] = f"Bearer {settings.otel_exporter_token}"
        otlp_trace_exporter = OTLPSpanExporter(
            endpoint=settings.otel_exporter_endpoint, headers=headers
        )
        provider.add_span_processor(BatchSpanProcessor(otlp_trace_exporter))
    trace.set_tracer_provider(provider)
    tracer = trace.get_tracer(settings.otel_service_name)

    logging.getLogger().setLevel(logging.DEBUG if settings.debug else logging.INFO)

    _initialized = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance. Ensures telemetry is initialized.
    Use this instead of logging.getLogger() directly.
    """
    if not _initialized:
        _initialize_telemetry()
    return logging.getLogger(name)


# Custom decorator for automatic span naming
def trace_span(func):
    """Decorator that automatically creates a span with the function name."""

    def _span_name(args) -> str:
        if args and hasattr(args[0], func.__name__):
            # If it's a method, include class name
            return f"{args[0].__class__.__name__}.{func.__name__}"
        return func.__name__

    @functools.wraps(func)
    def sync_wrapper(*args, **kwargs):
        with tracer.start_as_current_span(_span_name(args)):
            return func(*args, **kwargs)

    @functools.wraps(func)
    async def async_wrapper(*args, **kwargs):
        with tracer.start_as_current_span(_span_name(args)):
            return await func(*args, **kwargs)

    # Return appropriate wrapper based on function type
    if asyncio.iscoroutinefunction(func):
        return async_wrapper
    else:
        return sync_wrapper
