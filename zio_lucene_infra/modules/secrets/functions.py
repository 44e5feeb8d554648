"""
Secrets Module Functions
Secrets Manager entries synced into the cluster by External Secrets
"""

import pulumi
import pulumi_aws as aws
from typing import Any, Dict


def datadog_secret_name(name_prefix: str) -> str:
    return f"{name_prefix}/datadog-api-key"


def create_secret_resources(name_prefix: str, datadog_api_key: pulumi.Input[str],
                            provider: aws.Provider = None,
                            tags: Dict[str, str] = None) -> Dict[str, Any]:
    """
    Store the Datadog API key in Secrets Manager

    Args:
        name_prefix: Prefix of the secret path
        datadog_api_key: API key value, usually a Pulumi secret
        provider: AWS provider
        tags: Additional tags

    Returns:
        Dict with secret, secret version and outputs
    """
    tags = tags or {}
    secret_name = datadog_secret_name(name_prefix)

    secret = aws.secretsmanager.Secret(
        "datadog-api-key-secret",
        name=secret_name,
        description="Datadog API key for monitoring",
        # Delete immediately on destroy so the name can be reused
        recovery_window_in_days=0,
        tags={
            **tags,
            "Name": secret_name,
            "Module": "secrets"
        },
        opts=pulumi.ResourceOptions(provider=provider)
    )

    secret_version = aws.secretsmanager.SecretVersion(
        "datadog-api-key-secret-version",
        secret_id=secret.id,
        secret_string=datadog_api_key,
        opts=pulumi.ResourceOptions(provider=provider)
    )

    return {
        "secret": secret,
        "secret_version": secret_version,
        "secret_arn": secret.arn,
        "secret_name": secret_name
    }


def create_local_secret_resources(name_prefix: str, datadog_api_key: pulumi.Input[str],
                                  provider: aws.Provider,
                                  tags: Dict[str, str] = None) -> Dict[str, Any]:
    """Same secret in LocalStack, provider must point at LocalStack"""
    if provider is None:
        raise ValueError("Local secret needs the LocalStack AWS provider")
    return create_secret_resources(name_prefix, datadog_api_key, provider, tags)
