"""
External Secrets Module Functions
External Secrets Operator Helm release and the IAM role it uses to read Secrets Manager
"""

import json

import pulumi
import pulumi_aws as aws
import pulumi_kubernetes as k8s
from typing import Any, Dict, List, Optional

from zio_lucene_infra.modules.iam import create_irsa_role

OPERATOR_NAMESPACE = "external-secrets"
OPERATOR_SERVICE_ACCOUNT = "external-secrets"
OPERATOR_CHART = "external-secrets"
OPERATOR_CHART_VERSION = "0.11.0"
OPERATOR_CHART_REPO = "https://charts.external-secrets.io"


def build_secrets_read_policy(region: str, name_prefix: str) -> str:
    """Read-only access to the secrets under <prefix>/"""
    return json.dumps({
        "Version": "2012-10-17",
        "Statement": [
            {
                "Effect": "Allow",
                "Action": [
                    "secretsmanager:GetSecretValue",
                    "secretsmanager:DescribeSecret",
                    "secretsmanager:ListSecrets"
                ],
                "Resource": f"arn:aws:secretsmanager:{region}:*:secret:{name_prefix}/*"
            }
        ]
    })


def create_external_secrets_irsa_resources(provider_arn: pulumi.Output[str], issuer_url: pulumi.Output[str],
                                           region: str, name_prefix: str,
                                           provider: aws.Provider = None,
                                           tags: Dict[str, str] = None) -> Dict[str, Any]:
    """
    Create the IAM role the operator's service account assumes

    Args:
        provider_arn: ARN of the cluster's IAM OIDC provider
        issuer_url: OIDC issuer URL of the cluster
        region: Region of the secrets
        name_prefix: Secret path prefix the role may read
        provider: AWS provider
        tags: Additional tags

    Returns:
        Dict with role, inline policy and role ARN
    """
    role_result = create_irsa_role(
        "external-secrets-irsa-role",
        provider_arn,
        issuer_url,
        namespace=OPERATOR_NAMESPACE,
        service_account=OPERATOR_SERVICE_ACCOUNT,
        description="IAM role for External Secrets Operator to access Secrets Manager",
        provider=provider,
        tags=tags
    )

    role_policy = aws.iam.RolePolicy(
        "external-secrets-secretsmanager-policy",
        role=role_result["role"].id,
        policy=build_secrets_read_policy(region, name_prefix),
        opts=pulumi.ResourceOptions(provider=provider, depends_on=[role_result["role"]])
    )

    return {
        "role": role_result["role"],
        "role_policy": role_policy,
        "role_arn": role_result["role_arn"],
        "service_account_name": OPERATOR_SERVICE_ACCOUNT
    }


def create_local_external_secrets_irsa_resources() -> Dict[str, Any]:
    # LocalStack accepts static test credentials, no IAM role involved
    return {
        "role": None,
        "role_policy": None,
        "role_arn": None,
        "service_account_name": None
    }


def build_operator_values(role_arn: pulumi.Input[str] = None,
                          secretsmanager_endpoint: str = None) -> Dict[str, Any]:
    """
    Helm values for the operator chart

    Args:
        role_arn: IRSA role annotated onto the controller service account
        secretsmanager_endpoint: Custom Secrets Manager endpoint (LocalStack)

    Returns:
        Values dict
    """
    values: Dict[str, Any] = {"installCRDs": True}

    if role_arn is not None:
        values["serviceAccount"] = {
            "name": OPERATOR_SERVICE_ACCOUNT,
            "annotations": {"eks.amazonaws.com/role-arn": role_arn}
        }

    if secretsmanager_endpoint:
        values["extraEnv"] = [
            {"name": "AWS_SECRETSMANAGER_ENDPOINT", "value": secretsmanager_endpoint}
        ]

    return values


def install_operator(provider: k8s.Provider, values: Dict[str, Any],
                     depends_on: List[pulumi.Resource] = None) -> Dict[str, Any]:
    """
    Create the operator namespace and install the chart into it

    Args:
        provider: Kubernetes provider
        values: Helm values
        depends_on: Resources that must exist first (cluster, node group)

    Returns:
        Dict with namespace and Helm release
    """
    namespace = k8s.core.v1.Namespace(
        "external-secrets-namespace",
        metadata=k8s.meta.v1.ObjectMetaArgs(
            name=OPERATOR_NAMESPACE
        ),
        opts=pulumi.ResourceOptions(provider=provider, depends_on=depends_on or [])
    )

    release = k8s.helm.v3.Release(
        "external-secrets-operator",
        name=OPERATOR_CHART,
        chart=OPERATOR_CHART,
        version=OPERATOR_CHART_VERSION,
        namespace=namespace.metadata.name,
        repository_opts=k8s.helm.v3.RepositoryOptsArgs(
            repo=OPERATOR_CHART_REPO
        ),
        values=values,
        opts=pulumi.ResourceOptions(provider=provider, depends_on=[namespace])
    )

    return {
        "namespace": namespace,
        "helm_release": release
    }


def create_external_secrets_resources(provider: k8s.Provider, role_arn: pulumi.Input[str] = None,
                                      depends_on: List[pulumi.Resource] = None) -> Dict[str, Any]:
    """Install the operator on EKS, its service account bound to role_arn when given"""
    return install_operator(provider, build_operator_values(role_arn=role_arn), depends_on)


def create_local_external_secrets_resources(provider: k8s.Provider, localstack_endpoint: str,
                                            depends_on: Optional[List[pulumi.Resource]] = None) -> Dict[str, Any]:
    """Install the operator on k3d, reading secrets from LocalStack"""
    if not localstack_endpoint:
        raise ValueError("Local External Secrets Operator needs the LocalStack endpoint")
    return install_operator(
        provider,
        build_operator_values(secretsmanager_endpoint=localstack_endpoint),
        depends_on
    )
