"""
Unit tests for the EKS module
"""

import json
import unittest
from unittest.mock import MagicMock, Mock, patch
import sys
import os

import pulumi

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from zio_lucene_infra.modules.eks.functions import (
    NODE_POLICIES,
    create_eks_resources,
    create_local_eks_resources,
    create_node_role,
)


def mock_resource(**attrs):
    """Mock accepted by ResourceOptions(depends_on=...)"""
    resource = Mock(**attrs)
    resource.__class__ = pulumi.CustomResource
    return resource


class TestEksFunctions(unittest.TestCase):
    """Test EKS cluster and node group creation"""

    def test_eks_function_structure(self):
        """EKS function returns cluster outputs and resource references"""
        with patch('zio_lucene_infra.modules.eks.functions.aws') as mock_aws:
            mock_cluster = MagicMock()
            mock_cluster.name = "zio-lucene-cluster"
            mock_cluster.endpoint = "https://eks.example"
            mock_aws.eks.Cluster.return_value = mock_cluster
            mock_aws.iam.Role.return_value = Mock(arn="role-arn")
            mock_aws.iam.RolePolicyAttachment.return_value = mock_resource()

            result = create_eks_resources(
                "zio-lucene",
                ["subnet-1", "subnet-2"],
                cluster_version="1.33",
                desired_size=2,
                min_size=1,
                max_size=3
            )

            self.assertEqual(result["cluster_name"], "zio-lucene-cluster")
            self.assertEqual(result["cluster_endpoint"], "https://eks.example")
            self.assertEqual(result["oidc_issuer"], mock_cluster.identities[0].oidcs[0].issuer)
            self.assertEqual(result["node_role_arn"], "role-arn")
            self.assertEqual(result["node_group"], mock_aws.eks.NodeGroup.return_value)

            args, kwargs = mock_aws.eks.Cluster.call_args
            self.assertEqual(args[0], "zio-lucene-eks-cluster")
            self.assertEqual(kwargs["name"], "zio-lucene-cluster")
            self.assertEqual(kwargs["version"], "1.33")

            vpc_config = mock_aws.eks.ClusterVpcConfigArgs.call_args.kwargs
            self.assertEqual(vpc_config["subnet_ids"], ["subnet-1", "subnet-2"])
            self.assertTrue(vpc_config["endpoint_private_access"])
            self.assertTrue(vpc_config["endpoint_public_access"])

            scaling = mock_aws.eks.NodeGroupScalingConfigArgs.call_args.kwargs
            self.assertEqual(scaling, {"desired_size": 2, "max_size": 3, "min_size": 1})
            self.assertEqual(mock_aws.eks.NodeGroup.call_args.kwargs["instance_types"], ["t3.medium"])

    def test_invalid_node_group_sizes(self):
        """Desired size must lie between min and max"""
        with patch('zio_lucene_infra.modules.eks.functions.aws') as mock_aws:
            with self.assertRaises(ValueError):
                create_eks_resources("zio-lucene", ["subnet-1"], desired_size=5, min_size=1, max_size=3)
            mock_aws.eks.Cluster.assert_not_called()

    def test_node_role_policies(self):
        """Node role gets the worker, CNI and registry policies"""
        with patch('zio_lucene_infra.modules.eks.functions.aws') as mock_aws:
            result = create_node_role("zio-lucene")

            self.assertEqual(set(result["policy_attachments"]), {name for name, _ in NODE_POLICIES})
            trust = json.loads(mock_aws.iam.Role.call_args.kwargs["assume_role_policy"])
            self.assertEqual(trust["Statement"][0]["Principal"]["Service"], "ec2.amazonaws.com")
            attached = [call.kwargs["policy_arn"] for call in mock_aws.iam.RolePolicyAttachment.call_args_list]
            self.assertIn("arn:aws:iam::aws:policy/AmazonEKS_CNI_Policy", attached)

    def test_local_eks_not_supported(self):
        """The local stack runs on k3d"""
        with self.assertRaises(RuntimeError):
            create_local_eks_resources("zio-lucene")


if __name__ == "__main__":
    unittest.main(verbosity=2)
