"""
Pulumi modules for the zio-lucene stacks
Each module pairs a cloud create_<x>_resources with a k3d/LocalStack create_local_<x>_resources
"""

from .vpc import create_vpc_resources, create_local_vpc_resources
from .iam import create_oidc_provider_resources, create_local_oidc_provider_resources
from .eks import create_eks_resources, create_local_eks_resources
from .storage import create_bucket_resources, create_local_bucket_resources
from .ebs_csi import create_ebs_csi_resources, create_local_ebs_csi_resources
from .kafka import create_kafka_resources, create_local_kafka_resources
from .sqs import create_sqs_resources, create_local_sqs_resources
from .secrets import create_secret_resources, create_local_secret_resources
from .external_secrets import (
    create_external_secrets_irsa_resources,
    create_local_external_secrets_irsa_resources,
    create_external_secrets_resources,
    create_local_external_secrets_resources,
)
from .secret_sync import create_secret_sync_resources, create_local_secret_sync_resources
from .otel_collector import create_otel_collector_resources, create_local_otel_collector_resources
from .alb import (
    create_alb_controller_resources,
    create_local_alb_controller_resources,
    create_alb_ingress_resources,
    create_local_alb_ingress_resources,
)
from .route53 import create_route53_resources, create_local_route53_resources
from .apps import create_app_resources, create_local_app_resources

__all__ = [
    "create_vpc_resources",
    "create_local_vpc_resources",
    "create_oidc_provider_resources",
    "create_local_oidc_provider_resources",
    "create_eks_resources",
    "create_local_eks_resources",
    "create_bucket_resources",
    "create_local_bucket_resources",
    "create_ebs_csi_resources",
    "create_local_ebs_csi_resources",
    "create_kafka_resources",
    "create_local_kafka_resources",
    "create_sqs_resources",
    "create_local_sqs_resources",
    "create_secret_resources",
    "create_local_secret_resources",
    "create_external_secrets_irsa_resources",
    "create_local_external_secrets_irsa_resources",
    "create_external_secrets_resources",
    "create_local_external_secrets_resources",
    "create_secret_sync_resources",
    "create_local_secret_sync_resources",
    "create_otel_collector_resources",
    "create_local_otel_collector_resources",
    "create_alb_controller_resources",
    "create_local_alb_controller_resources",
    "create_alb_ingress_resources",
    "create_local_alb_ingress_resources",
    "create_route53_resources",
    "create_local_route53_resources",
    "create_app_resources",
    "create_local_app_resources",
]
