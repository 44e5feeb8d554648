"""
Unit tests for AWS and Kubernetes provider construction
"""

import unittest
from unittest.mock import Mock, patch
import sys
import os

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from zio_lucene_infra.modules.providers.functions import (
    LOCALSTACK_SERVICES,
    create_aws_provider,
    create_localstack_provider,
    create_eks_kubernetes_provider,
    create_local_kubernetes_provider,
    generate_kubeconfig,
)


class TestProviderFunctions(unittest.TestCase):
    """Test provider creation for both stack flavours"""

    def test_aws_provider_default_tags(self):
        """AWS provider carries the stack tags plus envName"""
        with patch('zio_lucene_infra.modules.providers.functions.aws') as mock_aws:
            create_aws_provider("zio-lucene", "us-east-1", "dev", {"Project": "zio-lucene"})

            args, kwargs = mock_aws.Provider.call_args
            self.assertEqual(args[0], "zio-lucene-aws-provider")
            self.assertEqual(kwargs["region"], "us-east-1")
            tags = mock_aws.ProviderDefaultTagsArgs.call_args.kwargs["tags"]
            self.assertEqual(tags, {"Project": "zio-lucene", "envName": "dev"})

    def test_localstack_provider_endpoints(self):
        """LocalStack provider routes every used service to the endpoint"""
        with patch('zio_lucene_infra.modules.providers.functions.aws') as mock_aws:
            create_localstack_provider("zio-lucene", "http://localhost:4566", "us-east-1")

            kwargs = mock_aws.Provider.call_args.kwargs
            self.assertEqual(kwargs["access_key"], "test")
            self.assertEqual(kwargs["secret_key"], "test")
            self.assertTrue(kwargs["s3_use_path_style"])
            self.assertTrue(kwargs["skip_credentials_validation"])

            endpoints = mock_aws.ProviderEndpointArgs.call_args.kwargs
            self.assertEqual(set(endpoints), set(LOCALSTACK_SERVICES))
            self.assertTrue(all(value == "http://localhost:4566" for value in endpoints.values()))

    def test_generate_kubeconfig(self):
        """Kubeconfig authenticates with aws eks get-token"""
        kubeconfig = generate_kubeconfig("zio-lucene-cluster", "https://eks.example", "Q0E=", "us-east-1")

        self.assertIn("server: https://eks.example", kubeconfig)
        self.assertIn("certificate-authority-data: Q0E=", kubeconfig)
        self.assertIn("current-context: zio-lucene-cluster", kubeconfig)
        self.assertIn("- get-token", kubeconfig)
        self.assertIn("- us-east-1", kubeconfig)

    def test_eks_kubernetes_provider(self):
        """EKS provider is built from the cluster outputs"""
        with patch('zio_lucene_infra.modules.providers.functions.k8s') as mock_k8s, \
             patch('zio_lucene_infra.modules.providers.functions.pulumi') as mock_pulumi:
            cluster = Mock()
            create_eks_kubernetes_provider(cluster, "us-east-1")

            mock_pulumi.Output.all.assert_called_once_with(
                cluster.name, cluster.endpoint, cluster.certificate_authority.data
            )
            args, kwargs = mock_k8s.Provider.call_args
            self.assertEqual(args[0], "eks-k8s-provider")
            self.assertEqual(kwargs["kubeconfig"], mock_pulumi.Output.all.return_value.apply.return_value)

    def test_local_kubernetes_provider(self):
        """k3d provider relies on the ambient kubeconfig"""
        with patch('zio_lucene_infra.modules.providers.functions.k8s') as mock_k8s:
            provider = create_local_kubernetes_provider()

            mock_k8s.Provider.assert_called_once_with("k3d-k8s-provider")
            self.assertEqual(provider, mock_k8s.Provider.return_value)


if __name__ == "__main__":
    unittest.main(verbosity=2)
