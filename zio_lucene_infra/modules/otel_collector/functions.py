"""
OpenTelemetry Collector Module Functions
opentelemetry-kube-stack release whose DaemonSet collector forwards OTLP traces, metrics and logs to Grafana Cloud
"""

import base64

import pulumi
import pulumi_kubernetes as k8s
from typing import Any, Dict, List

OTEL_NAMESPACE = "opentelemetry-operator-system"
OTEL_RELEASE = "opentelemetry-stack"
OTEL_CHART = "opentelemetry-kube-stack"
OTEL_CHART_REPO = "https://open-telemetry.github.io/opentelemetry-helm-charts"
GRAFANA_SECRET = "grafana-cloud-auth"

# Service of the DaemonSet collector created by the chart
OTLP_COLLECTOR_ENDPOINT = (
    f"http://{OTEL_RELEASE}-daemon-collector.{OTEL_NAMESPACE}.svc.cluster.local:4317"
)

SECRET_KEYS = [
    "GRAFANA_CLOUD_OTLP_ENDPOINT",
    "GRAFANA_CLOUD_INSTANCE_ID",
    "GRAFANA_CLOUD_API_KEY",
    "GRAFANA_CLOUD_AUTH_TOKEN",
]


def build_basic_auth_token(instance_id: str, api_key: str) -> str:
    """Grafana Cloud OTLP gateways take HTTP basic auth of instance id and API key"""
    return base64.b64encode(f"{instance_id}:{api_key}".encode("utf-8")).decode("ascii")


def build_otel_values() -> Dict[str, Any]:
    """
    Helm values for opentelemetry-kube-stack

    Credentials reach the collector as environment variables read from the
    grafana-cloud-auth secret and are expanded inside the collector config.
    """
    pipeline = {
        "receivers": ["otlp"],
        "processors": ["batch"],
        "exporters": ["otlphttp/grafana", "debug"]
    }

    return {
        # Grafana Cloud replaces any in-cluster Grafana
        "grafana": {"enabled": False},
        "opentelemetry-operator": {
            "admissionWebhooks": {
                "certManager": {"enabled": False},
                "autoGenerateCert": {"enabled": True}
            }
        },
        "collectors": {
            "daemon": {
                "enabled": True,
                "mode": "daemonset",
                "config": {
                    "receivers": {
                        "otlp": {
                            "protocols": {
                                "grpc": {"endpoint": "0.0.0.0:4317"},
                                "http": {"endpoint": "0.0.0.0:4318"}
                            }
                        }
                    },
                    "processors": {
                        "batch": {}
                    },
                    "exporters": {
                        "otlphttp/grafana": {
                            "endpoint": "${env:GRAFANA_CLOUD_OTLP_ENDPOINT}",
                            "headers": {
                                "Authorization": "Basic ${env:GRAFANA_CLOUD_AUTH_TOKEN}"
                            }
                        },
                        "debug": {"verbosity": "detailed"}
                    },
                    "service": {
                        "pipelines": {
                            "traces": dict(pipeline),
                            "metrics": dict(pipeline),
                            "logs": dict(pipeline)
                        }
                    }
                },
                "env": [
                    {
                        "name": key,
                        "valueFrom": {
                            "secretKeyRef": {"name": GRAFANA_SECRET, "key": key}
                        }
                    }
                    for key in SECRET_KEYS
                ]
            }
        }
    }


def create_otel_collector_resources(provider: k8s.Provider, grafana_instance_id: pulumi.Input[str],
                                    grafana_api_key: pulumi.Input[str],
                                    grafana_otlp_endpoint: pulumi.Input[str],
                                    depends_on: List[pulumi.Resource] = None) -> Dict[str, Any]:
    """
    Deploy the collector stack

    Args:
        provider: Kubernetes provider
        grafana_instance_id: Grafana Cloud instance id
        grafana_api_key: Grafana Cloud API key
        grafana_otlp_endpoint: Grafana Cloud OTLP gateway URL
        depends_on: Resources that must exist first (cluster, node group)

    Returns:
        Dict with namespace, secret, Helm release and the in-cluster OTLP endpoint
    """
    depends_on = depends_on or []

    namespace = k8s.core.v1.Namespace(
        "otel-namespace",
        metadata=k8s.meta.v1.ObjectMetaArgs(
            name=OTEL_NAMESPACE
        ),
        opts=pulumi.ResourceOptions(provider=provider, depends_on=depends_on)
    )

    auth_token = pulumi.Output.secret(
        pulumi.Output.all(grafana_instance_id, grafana_api_key).apply(
            lambda args: build_basic_auth_token(args[0], args[1])
        )
    )

    secret = k8s.core.v1.Secret(
        GRAFANA_SECRET,
        metadata=k8s.meta.v1.ObjectMetaArgs(
            name=GRAFANA_SECRET,
            namespace=namespace.metadata.name
        ),
        type="Opaque",
        string_data={
            "GRAFANA_CLOUD_INSTANCE_ID": grafana_instance_id,
            "GRAFANA_CLOUD_API_KEY": grafana_api_key,
            "GRAFANA_CLOUD_OTLP_ENDPOINT": grafana_otlp_endpoint,
            "GRAFANA_CLOUD_AUTH_TOKEN": auth_token
        },
        opts=pulumi.ResourceOptions(provider=provider, depends_on=[namespace, *depends_on])
    )

    release = k8s.helm.v3.Release(
        OTEL_RELEASE,
        name=OTEL_RELEASE,
        chart=OTEL_CHART,
        namespace=namespace.metadata.name,
        repository_opts=k8s.helm.v3.RepositoryOptsArgs(
            repo=OTEL_CHART_REPO
        ),
        values=build_otel_values(),
        opts=pulumi.ResourceOptions(provider=provider, depends_on=[namespace, secret, *depends_on])
    )

    return {
        "namespace": namespace,
        "grafana_secret": secret,
        "helm_release": release,
        "otlp_endpoint": OTLP_COLLECTOR_ENDPOINT
    }


def create_local_otel_collector_resources(provider: k8s.Provider, grafana_instance_id: pulumi.Input[str],
                                          grafana_api_key: pulumi.Input[str],
                                          grafana_otlp_endpoint: pulumi.Input[str]) -> Dict[str, Any]:
    """Same collector stack on k3d"""
    return create_otel_collector_resources(
        provider, grafana_instance_id, grafana_api_key, grafana_otlp_endpoint
    )
