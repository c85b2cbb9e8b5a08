"""
Telemetry configuration (Metrics & Tracing).
Exposes HTTP metrics through Prometheus, discovery-specific counters,
and optional OpenTelemetry tracing.
"""
from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from prometheus_client import Counter
from prometheus_fastapi_instrumentator import Instrumentator

from discovery.config import get_settings

# -----------------------------------------------------------------------------
# Discovery counters (registered once per process on the default registry)
# -----------------------------------------------------------------------------

SEARCH_CACHE_LOOKUPS = Counter(
    "discovery_search_cache_lookups_total",
    "Search result cache lookups by outcome",
    ["outcome"],
)

TRACKING_EVENTS = Counter(
    "discovery_tracking_events_total",
    "Popularity tracking events by action and outcome",
    ["action", "outcome"],
)


def setup_telemetry(app: FastAPI) -> None:
    """
    Setup Observability (Metrics & Tracing).

    1. Prometheus Metrics via /metrics
    2. OpenTelemetry Tracing via OTLP
    """
    settings = get_settings()

    if settings.ENABLE_PROMETHEUS:
        instrumentator = Instrumentator(
            should_group_status_codes=False,
            should_ignore_untemplated=True,
            should_respect_env_var=True,
            excluded_handlers=["/metrics", "/health", "/health/ready"],
            env_var_name="ENABLE_METRICS",
        )
        instrumentator.instrument(app).expose(app, include_in_schema=False)

    if settings.ENABLE_OTEL:
        resource = Resource.create(attributes={
            "service.name": settings.APP_NAME,
            "service.version": settings.APP_VERSION,
            "deployment.environment": "production" if not settings.DEBUG else "development",
        })

        provider = TracerProvider(resource=resource)
        # OTLP endpoint defaults to localhost:4317
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter()))
        trace.set_tracer_provider(provider)

        FastAPIInstrumentor.instrument_app(app, tracer_provider=provider)
