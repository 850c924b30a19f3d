import logging

from opentelemetry import propagate, trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.pymongo import PymongoInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

from catalog_admin.config.settings import Settings

logger = logging.getLogger(__name__)

_tracer_provider: TracerProvider | None = None


def setup_telemetry(settings: Settings):
    """TracerProvider, 전파기, pymongo 자동 계측 설정. OTEL_ENABLED 가 꺼져 있으면 아무것도 하지 않음"""
    global _tracer_provider

    if not settings.OTEL_ENABLED:
        logger.info("OpenTelemetry disabled; using no-op tracer.")
        return
    if _tracer_provider is not None:
        return

    try:
        resource = Resource.create({
            "service.name": settings.OTEL_SERVICE_NAME,
            "deployment.environment": settings.ENVIRONMENT,
        })

        tracer_provider = TracerProvider(resource=resource)
        otlp_span_exporter = OTLPSpanExporter(endpoint=settings.OTEL_EXPORTER_OTLP_ENDPOINT)
        tracer_provider.add_span_processor(BatchSpanProcessor(otlp_span_exporter))
        trace.set_tracer_provider(tracer_provider)
        _tracer_provider = tracer_provider

        # W3C Trace Context 전파
        propagate.set_global_textmap(TraceContextTextMapPropagator())

        PymongoInstrumentor().instrument()
        logger.info("PymongoInstrumentor applied.")

        logger.info("OpenTelemetry setup completed.", extra={
            "service_name": settings.OTEL_SERVICE_NAME,
            "otlp_endpoint": settings.OTEL_EXPORTER_OTLP_ENDPOINT,
        })
    except Exception as e:
        logger.error("Failed to setup OpenTelemetry", extra={"error": str(e)}, exc_info=True)
        raise


def instrument_fastapi_app(app):
    """FastAPI 앱을 OpenTelemetry로 계측"""
    if _tracer_provider is None:
        return
    FastAPIInstrumentor.instrument_app(app, tracer_provider=_tracer_provider)
    logger.info("FastAPI application instrumented by OpenTelemetry.")


def shutdown_telemetry():
    if _tracer_provider is not None:
        _tracer_provider.shutdown()
        logger.info("TracerProvider shut down.")
