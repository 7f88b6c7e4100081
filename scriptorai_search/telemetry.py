"""OpenTelemetry tracing for scriptorai-search.

Tracing is off by default. Enable it with the --telemetry flag or
OTEL_ENABLED=true. Spans cover index document fetches, index builds,
query execution and whole search submissions. When disabled, the
decorators and context manager here cost one attribute lookup.

Classes:
    ExporterType: Supported span exporters.
    TelemetryConfig: Tracing configuration, loadable from the environment.
    TelemetryService: Singleton owning the tracer provider.

Functions:
    traced: Decorator wrapping a function in a span.
    trace_span: Context manager wrapping a block in a span.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Generator
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from functools import wraps
from typing import TYPE_CHECKING, Any, TypeVar

from scriptorai_search import __version__
from scriptorai_search.logging_config import get_logger

if TYPE_CHECKING:
    from opentelemetry.sdk.trace.export import SpanExporter
    from opentelemetry.trace import Span, Tracer

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

SERVICE_NAME = "scriptorai-search"


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ("true", "1", "yes")


class ExporterType(str, Enum):
    """Supported span exporters."""

    CONSOLE = "console"
    OTLP = "otlp"


@dataclass
class TelemetryConfig:
    """Configuration for OpenTelemetry tracing.

    Attributes:
        enabled: Whether tracing is enabled.
        service_name: Name of the service in traces.
        service_version: Version of the service.
        exporter_type: Span exporter (console or otlp).
        otlp_endpoint: OTLP collector endpoint.
        otlp_insecure: Whether to use an insecure OTLP connection.
    """

    enabled: bool = False
    service_name: str = SERVICE_NAME
    service_version: str = field(default_factory=lambda: __version__)
    exporter_type: ExporterType = ExporterType.CONSOLE
    otlp_endpoint: str = "http://localhost:4317"
    otlp_insecure: bool = True

    @classmethod
    def from_env(cls) -> TelemetryConfig:
        """Create configuration from environment variables.

        Environment Variables:
            OTEL_ENABLED: Enable tracing (default: false)
            OTEL_SERVICE_NAME: Service name (default: scriptorai-search)
            OTEL_EXPORTER_TYPE: console or otlp (default: console)
            OTEL_EXPORTER_OTLP_ENDPOINT: OTLP endpoint (default: http://localhost:4317)
            OTEL_EXPORTER_OTLP_INSECURE: Use insecure connection (default: true)

        Returns:
            TelemetryConfig populated from the environment.
        """
        try:
            exporter_type = ExporterType(os.environ.get("OTEL_EXPORTER_TYPE", "console").lower())
        except ValueError:
            exporter_type = ExporterType.CONSOLE

        return cls(
            enabled=_env_flag("OTEL_ENABLED", "false"),
            service_name=os.environ.get("OTEL_SERVICE_NAME", SERVICE_NAME),
            exporter_type=exporter_type,
            otlp_endpoint=os.environ.get("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4317"),
            otlp_insecure=_env_flag("OTEL_EXPORTER_OTLP_INSECURE", "true"),
        )


def create_span_exporter(config: TelemetryConfig) -> SpanExporter:
    """Create the span exporter selected by the configuration."""
    if config.exporter_type == ExporterType.OTLP:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

        return OTLPSpanExporter(endpoint=config.otlp_endpoint, insecure=config.otlp_insecure)

    from opentelemetry.sdk.trace.export import ConsoleSpanExporter

    return ConsoleSpanExporter()


class TelemetryService:
    """Singleton owning the OpenTelemetry tracer provider.

    Example:
        >>> TelemetryService.get_instance().initialize(TelemetryConfig.from_env())
        >>> with TelemetryService.get_instance().tracer.start_as_current_span("op"):
        ...     pass
        >>> TelemetryService.get_instance().shutdown()
    """

    _instance: TelemetryService | None = None

    def __init__(self) -> None:
        self._config: TelemetryConfig | None = None
        self._initialized = False
        self._tracer_provider: Any = None

    @classmethod
    def get_instance(cls) -> TelemetryService:
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Shut down and drop the singleton (used by tests)."""
        if cls._instance is not None:
            cls._instance.shutdown()
        cls._instance = None

    def initialize(self, config: TelemetryConfig) -> None:
        """Initialize tracing. Subsequent calls are no-ops.

        Args:
            config: Telemetry configuration.
        """
        if self._initialized:
            logger.debug("Telemetry already initialized, skipping")
            return

        self._config = config
        self._initialized = True

        if not config.enabled:
            logger.debug("Telemetry disabled")
            return

        from opentelemetry import trace
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor

        resource = Resource.create(
            {"service.name": config.service_name, "service.version": config.service_version}
        )
        provider = TracerProvider(resource=resource)
        provider.add_span_processor(BatchSpanProcessor(create_span_exporter(config)))
        trace.set_tracer_provider(provider)
        self._tracer_provider = provider
        logger.info(
            "Telemetry initialized: service=%s, exporter=%s",
            config.service_name,
            config.exporter_type.value,
        )

    @property
    def is_enabled(self) -> bool:
        return self._initialized and self._config is not None and self._config.enabled

    @property
    def tracer(self) -> Tracer:
        from opentelemetry import trace

        if self._config is None:
            return trace.get_tracer(__name__)
        return trace.get_tracer(self._config.service_name, self._config.service_version)

    def shutdown(self) -> None:
        """Flush pending spans and shut the provider down."""
        if self._tracer_provider is None:
            return
        try:
            self._tracer_provider.force_flush()
            self._tracer_provider.shutdown()
            logger.debug("Tracer provider shut down")
        except Exception as e:
            logger.warning("Error shutting down tracer provider: %s", e)
        self._tracer_provider = None


def traced(
    name: str | None = None,
    attributes: dict[str, Any] | None = None,
) -> Callable[[F], F]:
    """Decorator wrapping a function call in a span.

    Exceptions are recorded on the span and re-raised.

    Args:
        name: Span name. Defaults to the function name.
        attributes: Additional span attributes.

    Example:
        >>> @traced("search.build_index")
        ... def build_index(collection): ...
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            service = TelemetryService.get_instance()
            if not service.is_enabled:
                return func(*args, **kwargs)

            with service.tracer.start_as_current_span(
                name or func.__name__, attributes=attributes
            ) as span:
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    _record_exception(span, e)
                    raise

        return wrapper  # type: ignore[return-value]

    return decorator


@contextmanager
def trace_span(
    name: str,
    attributes: dict[str, Any] | None = None,
) -> Generator[Span | None, None, None]:
    """Context manager wrapping a block in a span.

    Yields:
        The span, or None when tracing is disabled.

    Example:
        >>> with trace_span("search.execute", {"text.slug": "CCAG_1"}) as span:
        ...     if span:
        ...         span.set_attribute("search.results", 3)
    """
    service = TelemetryService.get_instance()
    if not service.is_enabled:
        yield None
        return

    with service.tracer.start_as_current_span(name, attributes=attributes) as span:
        try:
            yield span
        except Exception as e:
            _record_exception(span, e)
            raise


def _record_exception(span: Span, exception: Exception) -> None:
    """Record exception on span and set error status."""
    from opentelemetry.trace import Status, StatusCode

    span.record_exception(exception)
    span.set_status(Status(StatusCode.ERROR, str(exception)))
