"""
IAM Module Functions
OIDC identity provider for the EKS cluster and IRSA (IAM Roles for Service Accounts) helpers
"""

import json

import pulumi
import pulumi_aws as aws
from typing import Any, Dict, List

# Root CA thumbprint of the EKS OIDC endpoints
EKS_OIDC_THUMBPRINT = "9e99a48a9960b14926bb7f3b02e22da2b0ab7280"

STS_AUDIENCE = "sts.amazonaws.com"


def build_irsa_trust_policy(provider_arn: str, issuer_url: str, namespace: str,
                            service_account: str) -> str:
    """
    Build an assume-role policy that lets one Kubernetes service account assume the role

    Args:
        provider_arn: ARN of the cluster's IAM OIDC provider
        issuer_url: OIDC issuer URL of the cluster
        namespace: Namespace of the service account
        service_account: Service account name

    Returns:
        Trust policy JSON
    """
    issuer = issuer_url.replace("https://", "", 1)

    return json.dumps({
        "Version": "2012-10-17",
        "Statement": [
            {
                "Effect": "Allow",
                "Principal": {
                    "Federated": provider_arn
                },
                "Action": "sts:AssumeRoleWithWebIdentity",
                "Condition": {
                    "StringEquals": {
                        f"{issuer}:sub": f"system:serviceaccount:{namespace}:{service_account}",
                        f"{issuer}:aud": STS_AUDIENCE
                    }
                }
            }
        ]
    })


def create_irsa_role(name: str, provider_arn: pulumi.Output[str], issuer_url: pulumi.Output[str],
                     namespace: str, service_account: str, description: str = None,
                     role_name: str = None, policy_arns: List[str] = None,
                     provider: aws.Provider = None, tags: Dict[str, str] = None) -> Dict[str, Any]:
    """
    Create IAM role assumable by a Kubernetes service account

    Args:
        name: Resource name
        provider_arn: ARN of the cluster's IAM OIDC provider
        issuer_url: OIDC issuer URL of the cluster
        namespace: Namespace of the service account
        service_account: Service account name
        description: Role description
        role_name: Physical role name, generated when omitted
        policy_arns: Managed policies to attach
        provider: AWS provider
        tags: Additional tags

    Returns:
        Dict with role, policy attachments and outputs
    """
    tags = tags or {}
    policy_arns = policy_arns or []

    assume_role_policy = pulumi.Output.all(provider_arn, issuer_url).apply(
        lambda args: build_irsa_trust_policy(args[0], args[1], namespace, service_account)
    )

    role = aws.iam.Role(
        name,
        name=role_name,
        assume_role_policy=assume_role_policy,
        description=description or f"IRSA role for {namespace}/{service_account}",
        tags={
            **tags,
            "Name": role_name or name,
            "Module": "iam"
        },
        opts=pulumi.ResourceOptions(provider=provider)
    )

    attachments = []
    for i, policy_arn in enumerate(policy_arns):
        attachment = aws.iam.RolePolicyAttachment(
            f"{name}-policy-{i+1}",
            role=role.name,
            policy_arn=policy_arn,
            opts=pulumi.ResourceOptions(provider=provider, depends_on=[role])
        )
        attachments.append(attachment)

    return {
        "role": role,
        "policy_attachments": attachments,
        "role_arn": role.arn,
        "role_name": role.name
    }


def create_oidc_provider_resources(cluster: aws.eks.Cluster, issuer_url: pulumi.Output[str],
                                   provider: aws.Provider = None) -> Dict[str, Any]:
    """
    Register the EKS cluster's OIDC issuer as an IAM identity provider

    Args:
        cluster: EKS cluster resource
        issuer_url: OIDC issuer URL of the cluster
        provider: AWS provider

    Returns:
        Dict with the OIDC provider, its ARN and the issuer URL
    """
    oidc_provider = aws.iam.OpenIdConnectProvider(
        "eks-oidc-provider",
        url=issuer_url,
        client_id_lists=[STS_AUDIENCE],
        thumbprint_lists=[EKS_OIDC_THUMBPRINT],
        opts=pulumi.ResourceOptions(provider=provider, depends_on=[cluster])
    )

    return {
        "oidc_provider": oidc_provider,
        "provider_arn": oidc_provider.arn,
        "issuer_url": issuer_url
    }


def create_local_oidc_provider_resources(*args, **kwargs) -> Dict[str, Any]:
    raise RuntimeError("No OIDC provider is needed locally: k3d pods do not assume IAM roles")
