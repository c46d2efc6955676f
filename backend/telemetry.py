# telemetry.py — OpenTelemetry tracing for the IMF Gadget API
"""
Exports request and database spans to an OTLP collector when
OTEL_EXPORTER_OTLP_ENDPOINT is set; otherwise does nothing.
"""
import os
import logging

from config import APP_VERSION, ENVIRONMENT

logger = logging.getLogger("imf-gadgets.telemetry")

SERVICE_NAME = os.getenv("OTEL_SERVICE_NAME", "imf-gadget-api")
OTLP_ENDPOINT = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "")


def setup_telemetry(app=None, endpoint: str = OTLP_ENDPOINT):
    """Register an OTLP tracer provider and instrument FastAPI + SQLAlchemy.

    Returns the provider, or None when tracing is not configured or the
    OpenTelemetry packages (the ``telemetry`` extra) are not installed.
    """
    if not endpoint:
        logger.info("OpenTelemetry disabled (OTEL_EXPORTER_OTLP_ENDPOINT not set)")
        return None

    try:
        from opentelemetry import trace
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor
        from opentelemetry.sdk.resources import Resource, SERVICE_NAME as RES_SVC_NAME
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
        from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
    except ImportError:
        logger.warning("OTEL_EXPORTER_OTLP_ENDPOINT set but OpenTelemetry is not installed — tracing disabled")
        return None

    resource = Resource.create({
        RES_SVC_NAME: SERVICE_NAME,
        "service.version": APP_VERSION,
        "deployment.environment": ENVIRONMENT,
    })
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, insecure=True)))
    trace.set_tracer_provider(provider)

    if app is not None:
        FastAPIInstrumentor.instrument_app(app, excluded_urls="health", tracer_provider=provider)

    from database import engine
    SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine, tracer_provider=provider)

    logger.info(f"OpenTelemetry initialised → {endpoint}")
    return provider
