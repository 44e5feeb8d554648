"""
EKS Module
Cluster, IAM roles and managed node group
"""

from .functions import (
    create_eks_resources,
    create_local_eks_resources,
)

__all__ = [
    "create_eks_resources",
    "create_local_eks_resources",
]
