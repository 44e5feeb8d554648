"""
Configuration management for the zio-lucene infrastructure stacks
"""

import os

import pulumi
from typing import Dict, List

MESSAGING_MODES = ("kafka", "sqs")

LOCAL_STACK_NAME = "local"


class Config:
    """Centralized configuration for the local, dev and prod stacks"""

    def __init__(self):
        self.config = pulumi.Config()
        aws_config = pulumi.Config("aws")

        self.stack_name = pulumi.get_stack()
        if not self.stack_name:
            raise RuntimeError("Pulumi stack name is not set. Run this program through the Pulumi CLI.")

        # AWS Configuration
        self.aws_region = aws_config.get("region") or "us-east-1"

        # Naming
        self.name_prefix = self.config.get("namePrefix") or "zio-lucene"
        self.namespace = self.config.get("namespace") or "zio-lucene"

        # Messaging
        self.messaging_mode = self.config.get("messagingMode") or "kafka"
        if self.messaging_mode not in MESSAGING_MODES:
            raise ValueError(
                f"Unknown messagingMode: {self.messaging_mode}. Expected one of {', '.join(MESSAGING_MODES)}"
            )

        # Public access (all optional)
        self.hosted_zone_id = self.config.get("hostedZoneId")
        self.domain = self.config.get("domain")
        self.certificate_arn = self.config.get("certificateArn")

        # Cluster Configuration
        self.cluster_version = self.config.get("clusterVersion") or "1.33"
        self.node_instance_type = self.config.get("nodeInstanceType") or "t3.medium"
        self.node_desired_size = self.config.get_int("nodeDesiredSize", 2)
        self.node_min_size = self.config.get_int("nodeMinSize", 1)
        self.node_max_size = self.config.get_int("nodeMaxSize", 3)

        # VPC Configuration
        self.vpc_cidr = self.config.get("vpcCidr") or "10.0.0.0/16"
        self.public_subnet_cidrs = self.config.get_object("publicSubnetCidrs") or ["10.0.1.0/24", "10.0.2.0/24"]
        self.private_subnet_cidrs = self.config.get_object("privateSubnetCidrs") or ["10.0.3.0/24", "10.0.4.0/24"]

        # MSK Configuration
        self.kafka_version = self.config.get("kafkaVersion") or "3.9.x"
        self.kafka_broker_count = self.config.get_int("kafkaBrokerCount", 2)
        self.kafka_instance_type = self.config.get("kafkaInstanceType") or "kafka.t3.small"
        self.kafka_volume_size = self.config.get_int("kafkaVolumeSize", 10)

        # Images
        self.image_repository = self.config.get("imageRepository") or "mattlangsenkamp"
        self.image_tag = self.config.get("imageTag") or "latest"

        # Grafana Cloud (OpenTelemetry collector)
        self.grafana_instance_id = self.config.get("grafanaInstanceId")
        self.grafana_api_key = self.config.get_secret("grafanaApiKey")
        self.grafana_otlp_endpoint = self.config.get("grafanaOtlpEndpoint")

        # Datadog API key synced through External Secrets
        self.datadog_api_key = self.config.get_secret("datadogApiKey")

        # LocalStack
        self.localstack_endpoint = self.config.get("localstackEndpoint") or "http://localhost:4566"
        self.localstack_k3d_ip = os.environ.get("LOCALSTACK_K3D_IP") or None

        # Additional tags
        self.additional_tags = self.config.get_object("tags") or {}

    @property
    def is_local(self) -> bool:
        return self.stack_name == LOCAL_STACK_NAME

    @property
    def availability_zones(self) -> List[str]:
        return [f"{self.aws_region}a", f"{self.aws_region}b"]

    @property
    def common_tags(self) -> Dict[str, str]:
        """Get common tags for all AWS resources"""
        base_tags = {
            "Environment": self.stack_name,
            "Project": "zio-lucene",
            "Repository": "zio-lucene",
            "ManagedBy": "pulumi",
        }
        base_tags.update(self.additional_tags)
        return base_tags

    @property
    def image_pull_policy(self) -> str:
        return "IfNotPresent" if self.is_local else "Always"

    def image(self, service: str) -> str:
        """Container image for one of the application services"""
        if self.is_local:
            # Images are imported straight into k3d, no registry prefix
            return f"{service}-server:{self.image_tag}"
        return f"{self.image_repository}/{service}-server:{self.image_tag}"

    @property
    def localstack_cluster_endpoint(self) -> str:
        """LocalStack endpoint as seen from pods inside k3d"""
        if self.localstack_k3d_ip:
            return f"http://{self.localstack_k3d_ip}:4566"
        return "http://host.k3d.internal:4566"

    @property
    def otel_enabled(self) -> bool:
        return bool(self.grafana_instance_id and self.grafana_api_key is not None and self.grafana_otlp_endpoint)

    @property
    def secrets_enabled(self) -> bool:
        return self.datadog_api_key is not None

    @property
    def dns_enabled(self) -> bool:
        return bool(self.hosted_zone_id and self.domain)


def get_config() -> Config:
    """Get the configuration for the current stack"""
    return Config()
