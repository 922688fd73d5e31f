import socket

from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncEngine

from catalog.config import settings


def setup_telemetry(app: FastAPI) -> None:
    """OpenTelemetry 설정 (Traces). FastAPI와 Redis 자동 계측"""
    if not settings.otel_enabled:
        return

    from opentelemetry import trace
    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
    from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
    from opentelemetry.instrumentation.redis import RedisInstrumentor
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor

    resource = Resource.create(
        {
            "service.name": settings.otel_service_name,
            "service.namespace": "catalog",
            "service.version": "1.0.0",
            "service.instance.id": socket.gethostname(),
        }
    )

    tracer_provider = TracerProvider(resource=resource)
    otlp_exporter = OTLPSpanExporter(endpoint=settings.otel_exporter_otlp_endpoint, insecure=True)
    tracer_provider.add_span_processor(BatchSpanProcessor(otlp_exporter))
    trace.set_tracer_provider(tracer_provider)

    FastAPIInstrumentor.instrument_app(app)
    RedisInstrumentor().instrument()


def instrument_engine(engine: AsyncEngine) -> None:
    """엔진은 lifespan에서 생성되므로 별도로 계측"""
    if not settings.otel_enabled:
        return

    from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor

    SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine)
