"""
Apps Module Functions
Ingestion, reader and writer workloads of the search service

ingestion streams events into Kafka or SQS, writer consumes them and builds
index segments on its volume before shipping them to S3, reader serves search
requests from the segments in S3.
"""

import pulumi
import pulumi_kubernetes as k8s
from typing import Any, Dict, List, Optional

from zio_lucene_infra.config import MESSAGING_MODES
from zio_lucene_infra.modules.kubernetes import (
    build_env_vars,
    create_headless_service,
    create_stateful_set,
    require_metadata_name,
)

CONTAINER_PORT = 8080
INGESTION_PORT = 8080
READER_PORT = 80
WRITER_PORT = 8082
WRITER_CONFIG_MAP = "writer-config"


def build_messaging_env(messaging_mode: str, bootstrap_servers: pulumi.Input[str] = None,
                        queue_url: pulumi.Input[str] = None,
                        include_queue_url: bool = True) -> Dict[str, pulumi.Input[str]]:
    """
    Environment selecting the transport between ingestion and writer

    Args:
        messaging_mode: kafka or sqs
        bootstrap_servers: Kafka bootstrap servers, required in kafka mode
        queue_url: SQS queue URL, required in sqs mode
        include_queue_url: Put SQS_QUEUE_URL into the environment directly

    Returns:
        Environment variables by name
    """
    if messaging_mode == "kafka":
        if bootstrap_servers is None:
            raise ValueError("kafkaBootstrapServers required when messagingMode is 'kafka'")
        return {
            "MESSAGING_MODE": "kafka",
            "KAFKA_BOOTSTRAP_SERVERS": bootstrap_servers
        }

    if messaging_mode == "sqs":
        if queue_url is None:
            raise ValueError("sqsQueueUrl required when messagingMode is 'sqs'")
        env = {"MESSAGING_MODE": "sqs"}
        if include_queue_url:
            env["SQS_QUEUE_URL"] = queue_url
        return env

    raise ValueError(
        f"Unknown messagingMode: {messaging_mode}. Expected one of {', '.join(MESSAGING_MODES)}"
    )


def build_aws_endpoint_env(localstack_endpoint: Optional[str]) -> Dict[str, str]:
    """Point the AWS SDKs at LocalStack with its static test credentials"""
    if not localstack_endpoint:
        return {}
    return {
        "AWS_ENDPOINT_URL_SQS": localstack_endpoint,
        "AWS_ENDPOINT_URL_S3": localstack_endpoint,
        "AWS_ACCESS_KEY_ID": "test",
        "AWS_SECRET_ACCESS_KEY": "test"
    }


def build_otel_env(service: str, otlp_endpoint: Optional[str]) -> Dict[str, str]:
    if not otlp_endpoint:
        return {}
    return {
        "OTEL_SERVICE_NAME": service,
        "OTEL_EXPORTER_OTLP_ENDPOINT": otlp_endpoint
    }


def create_cluster_ip_service(name: str, namespace: pulumi.Input[str], port: int,
                              provider: k8s.Provider) -> k8s.core.v1.Service:
    """ClusterIP service forwarding port to the container's http port"""
    labels = {"app": name}
    return k8s.core.v1.Service(
        f"{name}-service",
        metadata=k8s.meta.v1.ObjectMetaArgs(
            name=name,
            namespace=namespace,
            labels=labels
        ),
        spec=k8s.core.v1.ServiceSpecArgs(
            type="ClusterIP",
            selector=labels,
            ports=[
                k8s.core.v1.ServicePortArgs(
                    name="http",
                    port=port,
                    target_port=CONTAINER_PORT
                )
            ]
        ),
        opts=pulumi.ResourceOptions(provider=provider)
    )


def create_deployment(name: str, namespace: pulumi.Input[str], image: str, image_pull_policy: str,
                      env_vars: Dict[str, pulumi.Input[str]], provider: k8s.Provider,
                      replicas: int = 1,
                      depends_on: List[pulumi.Resource] = None) -> k8s.apps.v1.Deployment:
    labels = {"app": name}
    return k8s.apps.v1.Deployment(
        f"{name}-deployment",
        metadata=k8s.meta.v1.ObjectMetaArgs(
            name=name,
            namespace=namespace,
            labels=labels
        ),
        spec=k8s.apps.v1.DeploymentSpecArgs(
            replicas=replicas,
            selector=k8s.meta.v1.LabelSelectorArgs(match_labels=labels),
            template=k8s.core.v1.PodTemplateSpecArgs(
                metadata=k8s.meta.v1.ObjectMetaArgs(labels=labels),
                spec=k8s.core.v1.PodSpecArgs(
                    containers=[
                        k8s.core.v1.ContainerArgs(
                            name=name,
                            image=image,
                            image_pull_policy=image_pull_policy,
                            ports=[
                                k8s.core.v1.ContainerPortArgs(name="http", container_port=CONTAINER_PORT)
                            ],
                            env=build_env_vars(env_vars)
                        )
                    ]
                )
            )
        ),
        opts=pulumi.ResourceOptions(provider=provider, depends_on=depends_on or [])
    )


def create_ingestion(namespace: pulumi.Input[str], bucket_name: pulumi.Input[str], image: str,
                     image_pull_policy: str, messaging_env: Dict[str, pulumi.Input[str]],
                     region: str, provider: k8s.Provider, localstack_endpoint: str = None,
                     otlp_endpoint: str = None,
                     depends_on: List[pulumi.Resource] = None) -> Dict[str, Any]:
    """
    Ingestion service and deployment

    Args:
        namespace: Application namespace
        bucket_name: Segments bucket
        image: Container image
        image_pull_policy: Image pull policy
        messaging_env: Output of build_messaging_env
        region: AWS region of the bucket and queue
        provider: Kubernetes provider
        localstack_endpoint: LocalStack endpoint for pods, local stack only
        otlp_endpoint: In-cluster OTLP collector
        depends_on: Extra dependencies

    Returns:
        Dict with service and deployment
    """
    service = create_cluster_ip_service("ingestion", namespace, INGESTION_PORT, provider)

    env_vars = {
        "S3_BUCKET_NAME": bucket_name,
        "AWS_REGION": region,
        **messaging_env,
        **build_aws_endpoint_env(localstack_endpoint),
        **build_otel_env("ingestion", otlp_endpoint),
    }

    deployment = create_deployment(
        "ingestion", namespace, image, image_pull_policy, env_vars, provider,
        depends_on=depends_on
    )

    return {
        "service": service,
        "deployment": deployment
    }


def create_reader(namespace: pulumi.Input[str], bucket_name: pulumi.Input[str], image: str,
                  image_pull_policy: str, region: str, provider: k8s.Provider,
                  localstack_endpoint: str = None, otlp_endpoint: str = None,
                  depends_on: List[pulumi.Resource] = None) -> Dict[str, Any]:
    """Reader service (port 80) and deployment"""
    service = create_cluster_ip_service("reader", namespace, READER_PORT, provider)

    env_vars = {
        "S3_BUCKET_NAME": bucket_name,
        "AWS_REGION": region,
        **build_aws_endpoint_env(localstack_endpoint),
        **build_otel_env("reader", otlp_endpoint),
    }

    deployment = create_deployment(
        "reader", namespace, image, image_pull_policy, env_vars, provider,
        depends_on=depends_on
    )

    return {
        "service": service,
        "deployment": deployment,
        "service_name": require_metadata_name(service, "service")
    }


def create_writer(namespace: pulumi.Input[str], bucket_name: pulumi.Input[str], image: str,
                  image_pull_policy: str, messaging_mode: str, region: str,
                  storage_class_name: str, provider: k8s.Provider,
                  bootstrap_servers: pulumi.Input[str] = None, queue_url: pulumi.Input[str] = None,
                  localstack_endpoint: str = None, otlp_endpoint: str = None,
                  storage_size: str = "1Gi",
                  depends_on: List[pulumi.Resource] = None) -> Dict[str, Any]:
    """
    Writer headless service, config map and StatefulSet

    The queue URL reaches the writer through the writer-config ConfigMap; the
    index lives on the writer-data volume mounted at /data.

    Args:
        namespace: Application namespace
        bucket_name: Segments bucket
        image: Container image
        image_pull_policy: Image pull policy
        messaging_mode: kafka or sqs
        region: AWS region
        storage_class_name: Storage class of the data volume
        provider: Kubernetes provider
        bootstrap_servers: Kafka bootstrap servers
        queue_url: SQS queue URL
        localstack_endpoint: LocalStack endpoint for pods, local stack only
        otlp_endpoint: In-cluster OTLP collector
        storage_size: Size of the data volume
        depends_on: Extra dependencies (storage driver)

    Returns:
        Dict with service, config map and statefulset
    """
    messaging_env = build_messaging_env(
        messaging_mode, bootstrap_servers, queue_url, include_queue_url=False
    )

    service = create_headless_service(
        "writer",
        namespace,
        {"app": "writer"},
        WRITER_PORT,
        provider,
        port_name="http",
        target_port=CONTAINER_PORT,
        depends_on=depends_on
    )

    config_data = {"SQS_QUEUE_URL": queue_url} if messaging_mode == "sqs" else {}

    config_map = k8s.core.v1.ConfigMap(
        WRITER_CONFIG_MAP,
        metadata=k8s.meta.v1.ObjectMetaArgs(
            name=WRITER_CONFIG_MAP,
            namespace=namespace
        ),
        data=config_data,
        opts=pulumi.ResourceOptions(provider=provider)
    )

    env_vars = {
        "S3_BUCKET_NAME": bucket_name,
        "AWS_REGION": region,
        **build_aws_endpoint_env(localstack_endpoint),
        **messaging_env,
        **build_otel_env("writer", otlp_endpoint),
    }

    stateful_set = create_stateful_set(
        "writer",
        namespace,
        service_name="writer",
        image=image,
        ports={"http": CONTAINER_PORT},
        provider=provider,
        env_vars=env_vars,
        volume_mounts={"writer-data": "/data"},
        storage_size=storage_size,
        storage_class_name=storage_class_name,
        image_pull_policy=image_pull_policy,
        config_map_refs=[WRITER_CONFIG_MAP],
        depends_on=[config_map, service, *(depends_on or [])]
    )

    return {
        "service": service,
        "config_map": config_map,
        "stateful_set": stateful_set
    }


def create_app_resources(namespace: pulumi.Input[str], bucket_name: pulumi.Input[str],
                         images: Dict[str, str], image_pull_policy: str, messaging_mode: str,
                         region: str, storage_class_name: str, provider: k8s.Provider,
                         bootstrap_servers: pulumi.Input[str] = None,
                         queue_url: pulumi.Input[str] = None,
                         otlp_endpoint: str = None,
                         localstack_endpoint: str = None,
                         depends_on: List[pulumi.Resource] = None,
                         storage_depends_on: List[pulumi.Resource] = None) -> Dict[str, Any]:
    """
    Deploy all three services on EKS

    Args:
        namespace: Application namespace
        bucket_name: Segments bucket
        images: Container image per service name
        image_pull_policy: Image pull policy
        messaging_mode: kafka or sqs
        region: AWS region
        storage_class_name: Storage class of the writer volume
        provider: Kubernetes provider
        bootstrap_servers: Kafka bootstrap servers
        queue_url: SQS queue URL
        otlp_endpoint: In-cluster OTLP collector
        localstack_endpoint: LocalStack endpoint for pods
        depends_on: Dependencies of every workload (namespace)
        storage_depends_on: Dependencies of the writer volume (storage driver)

    Returns:
        Dict with ingestion, reader and writer results
    """
    missing = [service for service in ("ingestion", "reader", "writer") if service not in images]
    if missing:
        raise ValueError(f"No image configured for {', '.join(missing)}")

    depends_on = depends_on or []
    messaging_env = build_messaging_env(messaging_mode, bootstrap_servers, queue_url)

    ingestion = create_ingestion(
        namespace, bucket_name, images["ingestion"], image_pull_policy, messaging_env, region, provider,
        localstack_endpoint=localstack_endpoint, otlp_endpoint=otlp_endpoint, depends_on=depends_on
    )

    reader = create_reader(
        namespace, bucket_name, images["reader"], image_pull_policy, region, provider,
        localstack_endpoint=localstack_endpoint, otlp_endpoint=otlp_endpoint, depends_on=depends_on
    )

    writer = create_writer(
        namespace, bucket_name, images["writer"], image_pull_policy, messaging_mode, region,
        storage_class_name, provider,
        bootstrap_servers=bootstrap_servers, queue_url=queue_url,
        localstack_endpoint=localstack_endpoint, otlp_endpoint=otlp_endpoint,
        depends_on=[*depends_on, *(storage_depends_on or [])]
    )

    return {
        "ingestion": ingestion,
        "reader": reader,
        "writer": writer
    }


def create_local_app_resources(namespace: pulumi.Input[str], bucket_name: pulumi.Input[str],
                               images: Dict[str, str], image_pull_policy: str, messaging_mode: str,
                               region: str, storage_class_name: str, provider: k8s.Provider,
                               localstack_endpoint: str,
                               bootstrap_servers: pulumi.Input[str] = None,
                               queue_url: pulumi.Input[str] = None,
                               otlp_endpoint: str = None,
                               depends_on: List[pulumi.Resource] = None) -> Dict[str, Any]:
    """Deploy all three services on k3d, talking to LocalStack for S3 and SQS"""
    if not localstack_endpoint:
        raise ValueError("Local services need the LocalStack endpoint")

    return create_app_resources(
        namespace, bucket_name, images, image_pull_policy, messaging_mode, region,
        storage_class_name, provider,
        bootstrap_servers=bootstrap_servers,
        queue_url=queue_url,
        otlp_endpoint=otlp_endpoint,
        localstack_endpoint=localstack_endpoint,
        depends_on=depends_on
    )
