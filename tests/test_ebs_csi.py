"""
Unit tests for persistent volume support
"""

import unittest
from unittest.mock import Mock, patch
import sys
import os

import pulumi

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from zio_lucene_infra.modules.ebs_csi.functions import (
    EBS_CSI_ADDON_VERSION,
    EBS_CSI_POLICY_ARN,
    create_ebs_csi_resources,
    create_local_ebs_csi_resources,
)


def mock_resource(**attrs):
    """Mock accepted by ResourceOptions(depends_on=...)"""
    resource = Mock(**attrs)
    resource.__class__ = pulumi.CustomResource
    return resource


class TestEbsCsiFunctions(unittest.TestCase):
    """Test EBS CSI addon and the local storage class"""

    def test_ebs_csi_function_structure(self):
        """Addon runs under an IRSA role for the controller service account"""
        with patch('zio_lucene_infra.modules.ebs_csi.functions.aws') as mock_aws, \
             patch('zio_lucene_infra.modules.ebs_csi.functions.create_irsa_role') as mock_irsa:
            mock_irsa.return_value = {
                "role": Mock(),
                "role_arn": "ebs-role-arn",
                "policy_attachments": [mock_resource()]
            }
            cluster = mock_resource()

            result = create_ebs_csi_resources(cluster, "provider-arn", "https://issuer")

            self.assertEqual(result["storage_class_name"], "gp2")
            self.assertEqual(result["addon"], mock_aws.eks.Addon.return_value)

            irsa_args, irsa_kwargs = mock_irsa.call_args
            self.assertEqual(irsa_args, ("ebs-csi-driver-role", "provider-arn", "https://issuer"))
            self.assertEqual(irsa_kwargs["namespace"], "kube-system")
            self.assertEqual(irsa_kwargs["service_account"], "ebs-csi-controller-sa")
            self.assertEqual(irsa_kwargs["policy_arns"], [EBS_CSI_POLICY_ARN])

            addon_args, addon_kwargs = mock_aws.eks.Addon.call_args
            self.assertEqual(addon_args[0], "ebs-csi-driver-addon")
            self.assertEqual(addon_kwargs["cluster_name"], cluster.name)
            self.assertEqual(addon_kwargs["addon_name"], "aws-ebs-csi-driver")
            self.assertEqual(addon_kwargs["addon_version"], EBS_CSI_ADDON_VERSION)
            self.assertEqual(addon_kwargs["service_account_role_arn"], "ebs-role-arn")

    def test_local_storage_class(self):
        """k3d uses its bundled local-path provisioner"""
        with patch('zio_lucene_infra.modules.ebs_csi.functions.pulumi') as mock_pulumi:
            result = create_local_ebs_csi_resources()
            mock_pulumi.log.info.assert_called_once()

        self.assertEqual(result["storage_class_name"], "local-path")
        self.assertIsNone(result["addon"])


if __name__ == "__main__":
    unittest.main(verbosity=2)
