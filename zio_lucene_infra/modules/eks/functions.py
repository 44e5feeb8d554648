"""
EKS Module Functions
Creates the EKS cluster, its IAM roles and the managed node group
"""

import json

import pulumi
import pulumi_aws as aws
from typing import Any, Dict, List

NODE_POLICIES = [
    ("worker", "arn:aws:iam::aws:policy/AmazonEKSWorkerNodePolicy"),
    ("cni", "arn:aws:iam::aws:policy/AmazonEKS_CNI_Policy"),
    ("registry", "arn:aws:iam::aws:policy/AmazonEC2ContainerRegistryReadOnly"),
]


def _service_trust_policy(service: str) -> str:
    return json.dumps({
        "Version": "2012-10-17",
        "Statement": [
            {
                "Effect": "Allow",
                "Principal": {
                    "Service": service
                },
                "Action": "sts:AssumeRole"
            }
        ]
    })


def create_cluster_role(name: str, provider: aws.Provider = None,
                        tags: Dict[str, str] = None) -> Dict[str, Any]:
    """
    Create IAM role for the EKS control plane

    Args:
        name: Resource name prefix
        provider: AWS provider
        tags: Additional tags

    Returns:
        Dict with role resource and outputs
    """
    tags = tags or {}

    role = aws.iam.Role(
        f"{name}-eks-cluster-role",
        assume_role_policy=_service_trust_policy("eks.amazonaws.com"),
        tags={
            **tags,
            "Name": f"{name}-eks-cluster-role",
            "Module": "eks"
        },
        opts=pulumi.ResourceOptions(provider=provider)
    )

    policy_attachment = aws.iam.RolePolicyAttachment(
        f"{name}-eks-cluster-policy",
        role=role.name,
        policy_arn="arn:aws:iam::aws:policy/AmazonEKSClusterPolicy",
        opts=pulumi.ResourceOptions(provider=provider)
    )

    return {
        "role": role,
        "policy_attachment": policy_attachment,
        "role_arn": role.arn
    }


def create_node_role(name: str, provider: aws.Provider = None,
                     tags: Dict[str, str] = None) -> Dict[str, Any]:
    """
    Create IAM role for EKS worker nodes

    Args:
        name: Resource name prefix
        provider: AWS provider
        tags: Additional tags

    Returns:
        Dict with role resource, policy attachments and outputs
    """
    tags = tags or {}

    role = aws.iam.Role(
        f"{name}-eks-node-role",
        assume_role_policy=_service_trust_policy("ec2.amazonaws.com"),
        tags={
            **tags,
            "Name": f"{name}-eks-node-role",
            "Module": "eks"
        },
        opts=pulumi.ResourceOptions(provider=provider)
    )

    policy_attachments = {}
    for policy_name, policy_arn in NODE_POLICIES:
        policy_attachments[policy_name] = aws.iam.RolePolicyAttachment(
            f"{name}-eks-{policy_name}-policy",
            role=role.name,
            policy_arn=policy_arn,
            opts=pulumi.ResourceOptions(provider=provider)
        )

    return {
        "role": role,
        "policy_attachments": policy_attachments,
        "role_arn": role.arn
    }


def create_eks_resources(name_prefix: str, subnet_ids: List[pulumi.Output[str]],
                         cluster_version: str = None,
                         node_instance_type: str = "t3.medium",
                         desired_size: int = 2, min_size: int = 1, max_size: int = 3,
                         provider: aws.Provider = None,
                         tags: Dict[str, str] = None) -> Dict[str, Any]:
    """
    Create EKS cluster and managed node group

    Args:
        name_prefix: Resource name prefix, the cluster is named <prefix>-cluster
        subnet_ids: Subnets for the control plane ENIs and the nodes
        cluster_version: Kubernetes version, EKS default when omitted
        node_instance_type: EC2 instance type for nodes
        desired_size: Desired number of nodes
        min_size: Minimum number of nodes
        max_size: Maximum number of nodes
        provider: AWS provider
        tags: Additional tags

    Returns:
        Dict with cluster outputs and resource references
    """
    tags = tags or {}

    if not min_size <= desired_size <= max_size:
        raise ValueError(
            f"Node group sizes must satisfy min <= desired <= max, got {min_size}/{desired_size}/{max_size}"
        )

    cluster_role_result = create_cluster_role(name_prefix, provider, tags)

    cluster = aws.eks.Cluster(
        f"{name_prefix}-eks-cluster",
        name=f"{name_prefix}-cluster",
        version=cluster_version,
        role_arn=cluster_role_result["role_arn"],
        vpc_config=aws.eks.ClusterVpcConfigArgs(
            subnet_ids=subnet_ids,
            endpoint_private_access=True,
            endpoint_public_access=True
        ),
        tags={
            **tags,
            "Name": f"{name_prefix}-cluster",
            "Module": "eks"
        },
        opts=pulumi.ResourceOptions(
            provider=provider,
            depends_on=[cluster_role_result["policy_attachment"]]
        )
    )

    node_role_result = create_node_role(name_prefix, provider, tags)

    node_group = aws.eks.NodeGroup(
        f"{name_prefix}-eks-node-group",
        cluster_name=cluster.name,
        node_role_arn=node_role_result["role_arn"],
        subnet_ids=subnet_ids,
        instance_types=[node_instance_type],
        scaling_config=aws.eks.NodeGroupScalingConfigArgs(
            desired_size=desired_size,
            max_size=max_size,
            min_size=min_size
        ),
        tags={
            **tags,
            "Name": f"{name_prefix}-eks-node-group",
            "Module": "eks"
        },
        opts=pulumi.ResourceOptions(
            provider=provider,
            depends_on=list(node_role_result["policy_attachments"].values())
        )
    )

    return {
        "cluster_name": cluster.name,
        "cluster_endpoint": cluster.endpoint,
        "cluster_certificate_authority_data": cluster.certificate_authority.data,
        "oidc_issuer": cluster.identities[0].oidcs[0].issuer,
        "node_role_arn": node_role_result["role_arn"],
        # Keep references to resources for dependencies
        "cluster": cluster,
        "node_group": node_group,
        "cluster_role": cluster_role_result["role"],
        "node_role": node_role_result["role"]
    }


def create_local_eks_resources(*args, **kwargs) -> Dict[str, Any]:
    raise RuntimeError("No EKS cluster locally: the local stack runs on k3d")
