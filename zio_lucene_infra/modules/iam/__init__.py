"""
IAM Module
EKS OIDC identity provider and IRSA roles
"""

from .functions import (
    build_irsa_trust_policy,
    create_irsa_role,
    create_oidc_provider_resources,
    create_local_oidc_provider_resources,
)

__all__ = [
    "build_irsa_trust_policy",
    "create_irsa_role",
    "create_oidc_provider_resources",
    "create_local_oidc_provider_resources",
]
