"""
Stack wiring for zio-lucene

local runs on k3d with LocalStack standing in for AWS, every other stack
(dev, prod) runs on EKS.
"""

import pulumi
from typing import Any, Dict

from zio_lucene_infra.config import Config, get_config
from zio_lucene_infra.modules.providers import (
    create_aws_provider,
    create_localstack_provider,
    create_eks_kubernetes_provider,
    create_local_kubernetes_provider,
)
from zio_lucene_infra.modules.kubernetes import create_namespace, create_aws_auth_config_map
from zio_lucene_infra.modules.vpc import create_vpc_resources
from zio_lucene_infra.modules.eks import create_eks_resources
from zio_lucene_infra.modules.iam import create_oidc_provider_resources
from zio_lucene_infra.modules.storage import create_bucket_resources, create_local_bucket_resources
from zio_lucene_infra.modules.ebs_csi import create_ebs_csi_resources, create_local_ebs_csi_resources
from zio_lucene_infra.modules.kafka import create_kafka_resources, create_local_kafka_resources
from zio_lucene_infra.modules.sqs import create_sqs_resources, create_local_sqs_resources
from zio_lucene_infra.modules.secrets import create_secret_resources, create_local_secret_resources
from zio_lucene_infra.modules.external_secrets import (
    create_external_secrets_irsa_resources,
    create_external_secrets_resources,
    create_local_external_secrets_resources,
)
from zio_lucene_infra.modules.external_secrets.functions import OPERATOR_NAMESPACE
from zio_lucene_infra.modules.secret_sync import (
    create_secret_sync_resources,
    create_local_secret_sync_resources,
)
from zio_lucene_infra.modules.otel_collector import (
    create_otel_collector_resources,
    create_local_otel_collector_resources,
)
from zio_lucene_infra.modules.alb import create_alb_controller_resources, create_alb_ingress_resources
from zio_lucene_infra.modules.apps import create_app_resources, create_local_app_resources

SEGMENTS_BUCKET = "segments"
SERVICES = ("ingestion", "reader", "writer")


def queue_name(name_prefix: str) -> str:
    return f"{name_prefix}-ingestion-events"


def _images(cfg: Config) -> Dict[str, str]:
    return {service: cfg.image(service) for service in SERVICES}


def _export_messaging(cfg: Config, messaging: Dict[str, Any]) -> None:
    if cfg.messaging_mode == "kafka":
        pulumi.export("kafkaBootstrapServers", messaging["bootstrap_servers"])
        if "cluster_arn" in messaging:
            pulumi.export("kafkaClusterArn", messaging["cluster_arn"])
    else:
        pulumi.export("sqsQueueUrl", messaging["queue_url"])


def deploy_cloud_stack(cfg: Config) -> Dict[str, Any]:
    """
    Deploy the EKS flavour

    Args:
        cfg: Stack configuration

    Returns:
        Dict with the results of every module
    """
    pulumi.log.info(f"Deploying '{cfg.stack_name}' to EKS in {cfg.aws_region} with {cfg.messaging_mode} messaging")
    tags = cfg.common_tags

    # 1. AWS provider and segments bucket
    aws_provider = create_aws_provider(cfg.name_prefix, cfg.aws_region, cfg.stack_name, tags)
    bucket = create_bucket_resources(SEGMENTS_BUCKET, aws_provider, tags=tags)

    # 2. Network
    vpc = create_vpc_resources(
        cfg.name_prefix,
        cfg.vpc_cidr,
        cfg.public_subnet_cidrs,
        cfg.private_subnet_cidrs,
        cfg.availability_zones,
        aws_provider,
        tags
    )

    # 3. Messaging: MSK in the private subnets or an SQS queue
    if cfg.messaging_mode == "kafka":
        messaging = create_kafka_resources(
            cfg.name_prefix,
            vpc["vpc_id"],
            vpc["private_subnet_ids"],
            vpc_cidr=cfg.vpc_cidr,
            kafka_version=cfg.kafka_version,
            broker_count=cfg.kafka_broker_count,
            instance_type=cfg.kafka_instance_type,
            volume_size=cfg.kafka_volume_size,
            provider=aws_provider,
            tags=tags
        )
    else:
        messaging = create_sqs_resources(queue_name(cfg.name_prefix), aws_provider, tags)

    # 4. EKS cluster on the public subnets
    eks = create_eks_resources(
        cfg.name_prefix,
        vpc["public_subnet_ids"],
        cluster_version=cfg.cluster_version,
        node_instance_type=cfg.node_instance_type,
        desired_size=cfg.node_desired_size,
        min_size=cfg.node_min_size,
        max_size=cfg.node_max_size,
        provider=aws_provider,
        tags=tags
    )
    cluster_deps = [eks["cluster"], eks["node_group"]]

    oidc = create_oidc_provider_resources(eks["cluster"], eks["oidc_issuer"], aws_provider)

    # 5. Kubernetes access and node registration
    k8s_provider = create_eks_kubernetes_provider(eks["cluster"], cfg.aws_region)
    aws_auth = create_aws_auth_config_map(eks["node_role_arn"], eks["node_group"], k8s_provider)

    # 6. Persistent volumes
    storage = create_ebs_csi_resources(
        eks["cluster"], oidc["provider_arn"], oidc["issuer_url"], aws_provider, tags
    )

    # 7. Application namespace
    namespace = create_namespace(cfg.namespace, k8s_provider, depends_on=cluster_deps)

    # 8. Optional observability
    otel = None
    if cfg.otel_enabled:
        otel = create_otel_collector_resources(
            k8s_provider,
            cfg.grafana_instance_id,
            cfg.grafana_api_key,
            cfg.grafana_otlp_endpoint,
            depends_on=cluster_deps
        )
    else:
        pulumi.log.info("Grafana Cloud not configured, skipping the OpenTelemetry collector")

    # 9. Optional secrets sync
    secret_sync = None
    if cfg.secrets_enabled:
        secret = create_secret_resources(cfg.name_prefix, cfg.datadog_api_key, aws_provider, tags)
        irsa = create_external_secrets_irsa_resources(
            oidc["provider_arn"], oidc["issuer_url"], cfg.aws_region, cfg.name_prefix, aws_provider, tags
        )
        operator = create_external_secrets_resources(
            k8s_provider, irsa["role_arn"], depends_on=cluster_deps
        )
        sync = create_secret_sync_resources(
            namespace["namespace_name"],
            secret["secret_name"],
            cfg.aws_region,
            k8s_provider,
            service_account=irsa["service_account_name"],
            service_account_namespace=OPERATOR_NAMESPACE,
            operator_release=operator["helm_release"]
        )
        secret_sync = {"secret": secret, "irsa": irsa, "operator": operator, "sync": sync}
    else:
        pulumi.log.info("datadogApiKey not configured, skipping the Secrets Manager sync")

    # 10. Services
    apps = create_app_resources(
        namespace["namespace_name"],
        bucket["bucket_id"],
        _images(cfg),
        cfg.image_pull_policy,
        cfg.messaging_mode,
        cfg.aws_region,
        storage["storage_class_name"],
        k8s_provider,
        bootstrap_servers=messaging.get("bootstrap_servers"),
        queue_url=messaging.get("queue_url"),
        otlp_endpoint=otel["otlp_endpoint"] if otel else None,
        depends_on=[namespace["namespace"], aws_auth],
        storage_depends_on=[storage["addon"]]
    )

    # 11. Public access through an ALB
    controller = create_alb_controller_resources(
        eks["cluster"],
        eks["node_group"],
        eks["cluster_name"],
        vpc["vpc_id"],
        oidc["oidc_provider"],
        oidc["provider_arn"],
        oidc["issuer_url"],
        cfg.stack_name,
        cfg.aws_region,
        k8s_provider,
        aws_provider,
        tags
    )
    ingress = create_alb_ingress_resources(
        namespace["namespace_name"],
        apps["reader"]["service_name"],
        eks["cluster"],
        controller["helm_release"],
        k8s_provider,
        cfg.stack_name,
        cfg.aws_region,
        certificate_arn=cfg.certificate_arn,
        hosted_zone_id=cfg.hosted_zone_id,
        base_domain=cfg.domain,
        aws_provider=aws_provider,
        depends_on=[apps["reader"]["service"]]
    )

    pulumi.export("bucketName", bucket["bucket_id"])
    pulumi.export("k8sNamespace", namespace["namespace_name"])
    pulumi.export("eksClusterName", eks["cluster_name"])
    pulumi.export("kubeconfigCommand", pulumi.Output.concat(
        "aws eks update-kubeconfig --region ", cfg.aws_region, " --name ", eks["cluster_name"]
    ))
    _export_messaging(cfg, messaging)
    pulumi.export("ingressHostname", ingress["hostname"])

    return {
        "bucket": bucket,
        "vpc": vpc,
        "messaging": messaging,
        "eks": eks,
        "oidc": oidc,
        "aws_auth": aws_auth,
        "storage": storage,
        "namespace": namespace,
        "otel": otel,
        "secret_sync": secret_sync,
        "apps": apps,
        "alb_controller": controller,
        "ingress": ingress
    }


def deploy_local_stack(cfg: Config) -> Dict[str, Any]:
    """
    Deploy the k3d flavour with LocalStack

    Args:
        cfg: Stack configuration

    Returns:
        Dict with the results of every module
    """
    pulumi.log.info(f"Deploying '{cfg.stack_name}' to k3d with {cfg.messaging_mode} messaging")
    tags = cfg.common_tags
    pod_endpoint = cfg.localstack_cluster_endpoint
    if not cfg.localstack_k3d_ip:
        pulumi.log.warn(f"LOCALSTACK_K3D_IP not set, pods will reach LocalStack at {pod_endpoint}")

    # 1. LocalStack provider and segments bucket
    localstack = create_localstack_provider(cfg.name_prefix, cfg.localstack_endpoint, cfg.aws_region, tags)
    bucket = create_local_bucket_resources(SEGMENTS_BUCKET, localstack, tags=tags)

    # 2. k3d cluster access and storage
    k8s_provider = create_local_kubernetes_provider()
    storage = create_local_ebs_csi_resources()

    # 3. Application namespace
    namespace = create_namespace(cfg.namespace, k8s_provider)

    # 4. Messaging: Kafka in the cluster or an SQS queue in LocalStack
    if cfg.messaging_mode == "kafka":
        messaging = create_local_kafka_resources(
            cfg.namespace,
            k8s_provider,
            storage_class_name=storage["storage_class_name"],
            depends_on=[namespace["namespace"]]
        )
    else:
        messaging = create_local_sqs_resources(queue_name(cfg.name_prefix), localstack, tags)

    # 5. Optional observability
    otel = None
    if cfg.otel_enabled:
        otel = create_local_otel_collector_resources(
            k8s_provider,
            cfg.grafana_instance_id,
            cfg.grafana_api_key,
            cfg.grafana_otlp_endpoint
        )
    else:
        pulumi.log.info("Grafana Cloud not configured, skipping the OpenTelemetry collector")

    # 6. Optional secrets sync against LocalStack
    secret_sync = None
    if cfg.secrets_enabled:
        secret = create_local_secret_resources(cfg.name_prefix, cfg.datadog_api_key, localstack, tags)
        operator = create_local_external_secrets_resources(k8s_provider, pod_endpoint)
        sync = create_local_secret_sync_resources(
            namespace["namespace_name"],
            secret["secret_name"],
            cfg.aws_region,
            k8s_provider,
            operator_release=operator["helm_release"]
        )
        secret_sync = {"secret": secret, "operator": operator, "sync": sync}
    else:
        pulumi.log.info("datadogApiKey not configured, skipping the Secrets Manager sync")

    # 7. Services
    apps = create_local_app_resources(
        namespace["namespace_name"],
        bucket["bucket_id"],
        _images(cfg),
        cfg.image_pull_policy,
        cfg.messaging_mode,
        cfg.aws_region,
        storage["storage_class_name"],
        k8s_provider,
        pod_endpoint,
        bootstrap_servers=messaging.get("bootstrap_servers"),
        queue_url=messaging.get("queue_url"),
        otlp_endpoint=otel["otlp_endpoint"] if otel else None,
        depends_on=[namespace["namespace"]]
    )

    pulumi.export("bucketName", bucket["bucket_id"])
    pulumi.export("k8sNamespace", namespace["namespace_name"])
    _export_messaging(cfg, messaging)

    return {
        "bucket": bucket,
        "storage": storage,
        "namespace": namespace,
        "messaging": messaging,
        "otel": otel,
        "secret_sync": secret_sync,
        "apps": apps
    }


def main() -> Dict[str, Any]:
    """Deploy the flavour matching the current stack"""
    cfg = get_config()
    if cfg.is_local:
        return deploy_local_stack(cfg)
    return deploy_cloud_stack(cfg)
