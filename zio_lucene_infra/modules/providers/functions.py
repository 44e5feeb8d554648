"""
Provider Module Functions
Explicit AWS and Kubernetes providers for the EKS and k3d/LocalStack stacks
"""

import pulumi
import pulumi_aws as aws
import pulumi_kubernetes as k8s
from typing import Dict

# Services the local stack provisions against LocalStack
LOCALSTACK_SERVICES = ["iam", "s3", "secretsmanager", "sqs", "sts"]


def create_aws_provider(name_prefix: str, region: str, env_name: str,
                        tags: Dict[str, str] = None) -> aws.Provider:
    """
    Create AWS provider with default tags applied to every resource

    Args:
        name_prefix: Resource name prefix
        region: AWS region
        env_name: Stack / environment name
        tags: Additional default tags

    Returns:
        AWS provider instance
    """
    tags = tags or {}

    return aws.Provider(
        f"{name_prefix}-aws-provider",
        region=region,
        default_tags=aws.ProviderDefaultTagsArgs(
            tags={
                **tags,
                "envName": env_name
            }
        )
    )


def create_localstack_provider(name_prefix: str, endpoint: str, region: str,
                               tags: Dict[str, str] = None) -> aws.Provider:
    """
    Create AWS provider pointed at LocalStack

    Args:
        name_prefix: Resource name prefix
        endpoint: LocalStack edge endpoint reachable from the Pulumi program
        region: AWS region LocalStack emulates
        tags: Default tags

    Returns:
        AWS provider instance
    """
    tags = tags or {}

    pulumi.log.info(f"Using LocalStack at {endpoint}")

    return aws.Provider(
        f"{name_prefix}-localstack-provider",
        region=region,
        access_key="test",
        secret_key="test",
        s3_use_path_style=True,
        skip_credentials_validation=True,
        skip_metadata_api_check=True,
        skip_requesting_account_id=True,
        endpoints=[
            aws.ProviderEndpointArgs(**{service: endpoint for service in LOCALSTACK_SERVICES})
        ],
        default_tags=aws.ProviderDefaultTagsArgs(tags=tags)
    )


def generate_kubeconfig(cluster_name: str, endpoint: str, ca_data: str, region: str) -> str:
    """
    Build a kubeconfig for an EKS cluster that authenticates with `aws eks get-token`

    Args:
        cluster_name: EKS cluster name
        endpoint: API server endpoint URL
        ca_data: Base64-encoded cluster CA certificate
        region: AWS region of the cluster

    Returns:
        Kubeconfig YAML
    """
    return f"""apiVersion: v1
kind: Config
clusters:
- cluster:
    server: {endpoint}
    certificate-authority-data: {ca_data}
  name: {cluster_name}
contexts:
- context:
    cluster: {cluster_name}
    user: {cluster_name}
  name: {cluster_name}
current-context: {cluster_name}
users:
- name: {cluster_name}
  user:
    exec:
      apiVersion: client.authentication.k8s.io/v1beta1
      command: aws
      args:
        - eks
        - get-token
        - --cluster-name
        - {cluster_name}
        - --region
        - {region}
      interactiveMode: IfAvailable
"""


def create_eks_kubernetes_provider(cluster: aws.eks.Cluster, region: str) -> k8s.Provider:
    """
    Create Kubernetes provider from EKS cluster outputs

    Args:
        cluster: EKS cluster resource
        region: AWS region of the cluster

    Returns:
        Kubernetes provider instance
    """
    kubeconfig = pulumi.Output.all(
        cluster.name,
        cluster.endpoint,
        cluster.certificate_authority.data
    ).apply(lambda args: generate_kubeconfig(args[0], args[1], args[2], region))

    return k8s.Provider(
        "eks-k8s-provider",
        kubeconfig=kubeconfig,
        opts=pulumi.ResourceOptions(depends_on=[cluster])
    )


def create_local_kubernetes_provider() -> k8s.Provider:
    """Kubernetes provider for k3d, using the ambient kubeconfig"""
    return k8s.Provider("k3d-k8s-provider")
