"""
EBS CSI Module Functions
Persistent volume support: EBS CSI driver addon on EKS, k3d's local-path provisioner locally
"""

import pulumi
import pulumi_aws as aws
from typing import Any, Dict

from zio_lucene_infra.modules.iam import create_irsa_role

EBS_CSI_ADDON_VERSION = "v1.37.0-eksbuild.1"
EBS_CSI_POLICY_ARN = "arn:aws:iam::aws:policy/service-role/AmazonEBSCSIDriverPolicy"
EBS_CSI_SERVICE_ACCOUNT = "ebs-csi-controller-sa"

CLOUD_STORAGE_CLASS = "gp2"
# Provisioner bundled with k3d
LOCAL_STORAGE_CLASS = "local-path"


def create_ebs_csi_resources(cluster: aws.eks.Cluster, provider_arn: pulumi.Output[str],
                             issuer_url: pulumi.Output[str], provider: aws.Provider = None,
                             tags: Dict[str, str] = None) -> Dict[str, Any]:
    """
    Install the EBS CSI driver as an EKS addon running under its own IRSA role

    Args:
        cluster: EKS cluster resource
        provider_arn: ARN of the cluster's IAM OIDC provider
        issuer_url: OIDC issuer URL of the cluster
        provider: AWS provider
        tags: Additional tags

    Returns:
        Dict with role, addon and the storage class volumes should use
    """
    tags = tags or {}

    role_result = create_irsa_role(
        "ebs-csi-driver-role",
        provider_arn,
        issuer_url,
        namespace="kube-system",
        service_account=EBS_CSI_SERVICE_ACCOUNT,
        description="IAM role for EBS CSI driver with IRSA",
        policy_arns=[EBS_CSI_POLICY_ARN],
        provider=provider,
        tags=tags
    )

    addon = aws.eks.Addon(
        "ebs-csi-driver-addon",
        cluster_name=cluster.name,
        addon_name="aws-ebs-csi-driver",
        addon_version=EBS_CSI_ADDON_VERSION,
        service_account_role_arn=role_result["role_arn"],
        resolve_conflicts_on_create="OVERWRITE",
        resolve_conflicts_on_update="OVERWRITE",
        tags={
            **tags,
            "Name": "ebs-csi-driver-addon",
            "Module": "ebs_csi"
        },
        opts=pulumi.ResourceOptions(
            provider=provider,
            depends_on=[cluster, *role_result["policy_attachments"]]
        )
    )

    return {
        "storage_class_name": CLOUD_STORAGE_CLASS,
        "role": role_result["role"],
        "addon": addon
    }


def create_local_ebs_csi_resources() -> Dict[str, Any]:
    """k3d already ships a dynamic provisioner, nothing to create"""
    pulumi.log.info(f"Using k3d's bundled '{LOCAL_STORAGE_CLASS}' storage class for persistent volumes")
    return {
        "storage_class_name": LOCAL_STORAGE_CLASS,
        "addon": None
    }
