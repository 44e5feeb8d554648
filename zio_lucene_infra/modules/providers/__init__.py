"""
Providers Module
AWS (real or LocalStack) and Kubernetes (EKS or k3d) providers
"""

from .functions import (
    create_aws_provider,
    create_localstack_provider,
    generate_kubeconfig,
    create_eks_kubernetes_provider,
    create_local_kubernetes_provider,
)

__all__ = [
    "create_aws_provider",
    "create_localstack_provider",
    "generate_kubeconfig",
    "create_eks_kubernetes_provider",
    "create_local_kubernetes_provider",
]
