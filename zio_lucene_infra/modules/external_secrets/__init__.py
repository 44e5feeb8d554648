"""
External Secrets Module
Operator install and its Secrets Manager access
"""

from .functions import (
    create_external_secrets_irsa_resources,
    create_local_external_secrets_irsa_resources,
    create_external_secrets_resources,
    create_local_external_secrets_resources,
)

__all__ = [
    "create_external_secrets_irsa_resources",
    "create_local_external_secrets_irsa_resources",
    "create_external_secrets_resources",
    "create_local_external_secrets_resources",
]
