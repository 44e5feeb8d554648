"""
OpenTelemetry Collector Module
Collector stack exporting to Grafana Cloud
"""

from .functions import (
    OTLP_COLLECTOR_ENDPOINT,
    create_otel_collector_resources,
    create_local_otel_collector_resources,
)

__all__ = [
    "OTLP_COLLECTOR_ENDPOINT",
    "create_otel_collector_resources",
    "create_local_otel_collector_resources",
]
