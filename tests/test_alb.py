"""
Unit tests for the ALB controller and ingress
"""

import json
import unittest
from types import SimpleNamespace
from unittest.mock import Mock, patch
import sys
import os

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from zio_lucene_infra.modules.alb.functions import (
    CONTROLLER_NAME,
    HEALTHCHECK_PATH,
    INGRESS_PATH,
    READER_SERVICE_PORT,
    _alb_hostname,
    build_controller_values,
    build_ingress_annotations,
    create_alb_controller_resources,
    create_alb_ingress_resources,
    create_local_alb_controller_resources,
    create_local_alb_ingress_resources,
)
from zio_lucene_infra.modules.alb.policy import ALB_CONTROLLER_POLICY


class TestAlbController(unittest.TestCase):
    """Test the load balancer controller install"""

    def test_controller_values(self):
        values = build_controller_values("zio-lucene-cluster", CONTROLLER_NAME, "us-east-1", "vpc-12345")

        self.assertEqual(values["clusterName"], "zio-lucene-cluster")
        self.assertEqual(values["serviceAccount"], {"create": False, "name": CONTROLLER_NAME})
        self.assertEqual(values["region"], "us-east-1")
        self.assertEqual(values["vpcId"], "vpc-12345")

    def test_controller_policy_document(self):
        """Policy grants what the controller needs to manage ALBs"""
        actions = set()
        for statement in ALB_CONTROLLER_POLICY["Statement"]:
            action = statement["Action"]
            actions.update(action if isinstance(action, list) else [action])

        self.assertIn("elasticloadbalancing:CreateLoadBalancer", actions)
        self.assertIn("elasticloadbalancing:RegisterTargets", actions)
        self.assertIn("ec2:DescribeSubnets", actions)

    def test_controller_function_structure(self):
        """Policy, IRSA role, service account and Helm release"""
        with patch('zio_lucene_infra.modules.alb.functions.aws') as mock_aws, \
             patch('zio_lucene_infra.modules.alb.functions.k8s') as mock_k8s, \
             patch('zio_lucene_infra.modules.alb.functions.pulumi') as mock_pulumi, \
             patch('zio_lucene_infra.modules.alb.functions.create_irsa_role') as mock_irsa:
            mock_role = Mock()
            mock_role.arn = "alb-role-arn"
            mock_irsa.return_value = {"role": mock_role, "role_arn": "alb-role-arn"}

            result = create_alb_controller_resources(
                Mock(), Mock(), "zio-lucene-cluster", "vpc-12345", Mock(),
                "provider-arn", "https://issuer", "dev", "us-east-1", Mock()
            )

            self.assertEqual(result["helm_release"], mock_k8s.helm.v3.Release.return_value)
            self.assertEqual(result["role"], mock_role)

            policy_kwargs = mock_aws.iam.Policy.call_args.kwargs
            self.assertEqual(policy_kwargs["name"], "AWSLoadBalancerControllerPolicy-dev")
            self.assertEqual(json.loads(policy_kwargs["policy"]), ALB_CONTROLLER_POLICY)

            irsa_kwargs = mock_irsa.call_args.kwargs
            self.assertEqual(irsa_kwargs["namespace"], "kube-system")
            self.assertEqual(irsa_kwargs["service_account"], CONTROLLER_NAME)
            self.assertEqual(irsa_kwargs["role_name"], "AWSLoadBalancerControllerRole-dev")

            sa_metadata = mock_k8s.meta.v1.ObjectMetaArgs.call_args.kwargs
            self.assertEqual(sa_metadata["annotations"], {"eks.amazonaws.com/role-arn": "alb-role-arn"})

            release = mock_k8s.helm.v3.Release.call_args.kwargs
            self.assertEqual(release["chart"], CONTROLLER_NAME)
            self.assertEqual(release["namespace"], "kube-system")
            self.assertEqual(release["values"], mock_pulumi.Output.all.return_value.apply.return_value)
            mock_pulumi.Output.all.assert_called_once_with("zio-lucene-cluster", "vpc-12345")

    def test_local_controller_not_supported(self):
        with self.assertRaises(RuntimeError):
            create_local_alb_controller_resources()


class TestAlbIngress(unittest.TestCase):
    """Test the reader ingress"""

    def test_http_annotations(self):
        """Without a certificate the ALB only listens on 80"""
        annotations = build_ingress_annotations()

        self.assertEqual(annotations["kubernetes.io/ingress.class"], "alb")
        self.assertEqual(annotations["alb.ingress.kubernetes.io/scheme"], "internet-facing")
        self.assertEqual(annotations["alb.ingress.kubernetes.io/target-type"], "ip")
        self.assertEqual(annotations["alb.ingress.kubernetes.io/healthcheck-path"], HEALTHCHECK_PATH)
        self.assertEqual(json.loads(annotations["alb.ingress.kubernetes.io/listen-ports"]), [{"HTTP": 80}])
        self.assertNotIn("alb.ingress.kubernetes.io/certificate-arn", annotations)

    def test_https_annotations(self):
        """A certificate adds 443 and the redirect"""
        annotations = build_ingress_annotations("cert-arn")

        self.assertEqual(
            json.loads(annotations["alb.ingress.kubernetes.io/listen-ports"]),
            [{"HTTP": 80}, {"HTTPS": 443}]
        )
        self.assertEqual(annotations["alb.ingress.kubernetes.io/certificate-arn"], "cert-arn")
        self.assertEqual(annotations["alb.ingress.kubernetes.io/ssl-redirect"], "443")

    def test_alb_hostname(self):
        status = SimpleNamespace(load_balancer=SimpleNamespace(ingress=[
            SimpleNamespace(hostname=None),
            SimpleNamespace(hostname="k8s-zio-123.us-east-1.elb.amazonaws.com"),
        ]))
        self.assertEqual(_alb_hostname(status), "k8s-zio-123.us-east-1.elb.amazonaws.com")

    def test_alb_hostname_missing(self):
        """An ingress without a load balancer fails the deployment"""
        with self.assertRaises(RuntimeError):
            _alb_hostname(SimpleNamespace(load_balancer=SimpleNamespace(ingress=[])))
        with self.assertRaises(RuntimeError):
            _alb_hostname(None)

    def test_ingress_without_dns(self):
        """Ingress routes /search to the reader and skips DNS when unconfigured"""
        with patch('zio_lucene_infra.modules.alb.functions.k8s') as mock_k8s, \
             patch('zio_lucene_infra.modules.alb.functions.pulumi') as mock_pulumi, \
             patch('zio_lucene_infra.modules.alb.functions.create_route53_resources') as mock_route53:
            mock_ingress = mock_k8s.networking.v1.Ingress.return_value

            result = create_alb_ingress_resources(
                "zio-lucene", "reader", Mock(), Mock(), Mock(), "dev", "us-east-1"
            )

            self.assertEqual(result["ingress"], mock_ingress)
            self.assertEqual(result["hostname"], mock_ingress.status.apply.return_value)
            mock_ingress.status.apply.assert_called_once_with(_alb_hostname)
            self.assertIsNone(result["dns_record"])
            mock_route53.assert_not_called()
            mock_pulumi.log.info.assert_called_once()

            path = mock_k8s.networking.v1.HTTPIngressPathArgs.call_args.kwargs
            self.assertEqual(path["path"], INGRESS_PATH)
            self.assertEqual(path["path_type"], "Prefix")
            mock_k8s.networking.v1.IngressServiceBackendArgs.assert_called_once()
            self.assertEqual(
                mock_k8s.networking.v1.IngressServiceBackendArgs.call_args.kwargs["name"], "reader"
            )
            mock_k8s.networking.v1.ServiceBackendPortArgs.assert_called_once_with(number=READER_SERVICE_PORT)

    def test_ingress_with_dns(self):
        """Hosted zone and domain add an alias record for the ALB"""
        with patch('zio_lucene_infra.modules.alb.functions.k8s') as mock_k8s, \
             patch('zio_lucene_infra.modules.alb.functions.pulumi'), \
             patch('zio_lucene_infra.modules.alb.functions.create_route53_resources') as mock_route53:
            aws_provider = Mock()

            result = create_alb_ingress_resources(
                "zio-lucene", "reader", Mock(), Mock(), Mock(), "dev", "us-east-1",
                hosted_zone_id="Z123", base_domain="example.com", aws_provider=aws_provider
            )

            hostname = mock_k8s.networking.v1.Ingress.return_value.status.apply.return_value
            mock_route53.assert_called_once_with(
                hostname, "Z123", "example.com", "dev", "us-east-1", aws_provider
            )
            self.assertEqual(result["dns_record"], mock_route53.return_value)

    def test_local_ingress_not_supported(self):
        with self.assertRaises(RuntimeError):
            create_local_alb_ingress_resources()


if __name__ == "__main__":
    unittest.main(verbosity=2)
