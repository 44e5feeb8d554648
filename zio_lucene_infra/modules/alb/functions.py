"""
ALB Module Functions
AWS Load Balancer Controller and the internet-facing ingress in front of the reader
"""

import json

import pulumi
import pulumi_aws as aws
import pulumi_kubernetes as k8s
from typing import Any, Dict, List, Optional

from zio_lucene_infra.modules.iam import create_irsa_role
from zio_lucene_infra.modules.route53 import create_route53_resources

from .policy import ALB_CONTROLLER_POLICY

CONTROLLER_NAME = "aws-load-balancer-controller"
CONTROLLER_NAMESPACE = "kube-system"
CONTROLLER_CHART_REPO = "https://aws.github.io/eks-charts"

INGRESS_NAME = "zio-lucene-ingress"
INGRESS_PATH = "/search"
# Reader exposes its health check under the routed prefix
HEALTHCHECK_PATH = "/search/health"
READER_SERVICE_PORT = 80


def build_controller_values(cluster_name: str, service_account: str, region: str,
                            vpc_id: str) -> Dict[str, Any]:
    return {
        "clusterName": cluster_name,
        "serviceAccount": {
            "create": False,
            "name": service_account
        },
        "region": region,
        "vpcId": vpc_id
    }


def create_alb_controller_resources(cluster: aws.eks.Cluster, node_group: aws.eks.NodeGroup,
                                    cluster_name: pulumi.Output[str], vpc_id: pulumi.Output[str],
                                    oidc_provider: aws.iam.OpenIdConnectProvider,
                                    provider_arn: pulumi.Output[str], issuer_url: pulumi.Output[str],
                                    stack_name: str, region: str, k8s_provider: k8s.Provider,
                                    aws_provider: aws.Provider = None,
                                    tags: Dict[str, str] = None) -> Dict[str, Any]:
    """
    Install the AWS Load Balancer Controller with its IRSA role

    Args:
        cluster: EKS cluster resource
        node_group: EKS node group the controller pods run on
        cluster_name: EKS cluster name
        vpc_id: VPC of the cluster
        oidc_provider: Cluster IAM OIDC provider resource
        provider_arn: ARN of the OIDC provider
        issuer_url: OIDC issuer URL
        stack_name: Stack name, suffix of the IAM names
        region: AWS region
        k8s_provider: Kubernetes provider
        aws_provider: AWS provider
        tags: Additional tags

    Returns:
        Dict with policy, role, service account and Helm release
    """
    tags = tags or {}

    policy = aws.iam.Policy(
        "alb-controller-policy",
        name=f"AWSLoadBalancerControllerPolicy-{stack_name}",
        policy=json.dumps(ALB_CONTROLLER_POLICY),
        description="IAM policy for AWS Load Balancer Controller",
        tags={
            **tags,
            "Module": "alb"
        },
        opts=pulumi.ResourceOptions(provider=aws_provider)
    )

    role_result = create_irsa_role(
        "alb-controller-role",
        provider_arn,
        issuer_url,
        namespace=CONTROLLER_NAMESPACE,
        service_account=CONTROLLER_NAME,
        role_name=f"AWSLoadBalancerControllerRole-{stack_name}",
        description="IAM role for AWS Load Balancer Controller with OIDC",
        provider=aws_provider,
        tags=tags
    )
    role = role_result["role"]

    attachment = aws.iam.RolePolicyAttachment(
        "alb-controller-policy-attachment",
        role=role.name,
        policy_arn=policy.arn,
        opts=pulumi.ResourceOptions(provider=aws_provider, depends_on=[oidc_provider])
    )

    service_account = k8s.core.v1.ServiceAccount(
        "aws-load-balancer-controller-sa",
        metadata=k8s.meta.v1.ObjectMetaArgs(
            name=CONTROLLER_NAME,
            namespace=CONTROLLER_NAMESPACE,
            annotations={"eks.amazonaws.com/role-arn": role.arn}
        ),
        opts=pulumi.ResourceOptions(provider=k8s_provider, depends_on=[cluster])
    )

    values = pulumi.Output.all(cluster_name, vpc_id).apply(
        lambda args: build_controller_values(args[0], CONTROLLER_NAME, region, args[1])
    )

    release = k8s.helm.v3.Release(
        CONTROLLER_NAME,
        name=CONTROLLER_NAME,
        chart=CONTROLLER_NAME,
        namespace=CONTROLLER_NAMESPACE,
        repository_opts=k8s.helm.v3.RepositoryOptsArgs(
            repo=CONTROLLER_CHART_REPO
        ),
        timeout=300,
        wait_for_jobs=True,
        values=values,
        opts=pulumi.ResourceOptions(
            provider=k8s_provider,
            depends_on=[cluster, node_group, service_account, attachment]
        )
    )

    return {
        "policy": policy,
        "role": role,
        "policy_attachment": attachment,
        "service_account": service_account,
        "helm_release": release
    }


def create_local_alb_controller_resources(*args, **kwargs) -> Dict[str, Any]:
    raise RuntimeError("No load balancer controller locally: k3d has no ALB")


def build_ingress_annotations(certificate_arn: Optional[str] = None) -> Dict[str, str]:
    """
    ALB ingress annotations

    HTTPS on 443 with a redirect from 80 when a certificate is given, plain HTTP otherwise.
    """
    annotations = {
        "kubernetes.io/ingress.class": "alb",
        "alb.ingress.kubernetes.io/scheme": "internet-facing",
        "alb.ingress.kubernetes.io/target-type": "ip",
        "alb.ingress.kubernetes.io/healthcheck-path": HEALTHCHECK_PATH,
        "alb.ingress.kubernetes.io/healthcheck-interval-seconds": "15",
        "alb.ingress.kubernetes.io/healthcheck-timeout-seconds": "5",
        "alb.ingress.kubernetes.io/healthy-threshold-count": "2",
        "alb.ingress.kubernetes.io/unhealthy-threshold-count": "2",
    }

    if certificate_arn:
        annotations.update({
            "alb.ingress.kubernetes.io/listen-ports": json.dumps([{"HTTP": 80}, {"HTTPS": 443}]),
            "alb.ingress.kubernetes.io/certificate-arn": certificate_arn,
            "alb.ingress.kubernetes.io/ssl-redirect": "443",
        })
    else:
        annotations["alb.ingress.kubernetes.io/listen-ports"] = json.dumps([{"HTTP": 80}])

    return annotations


def _alb_hostname(status: Any) -> str:
    """First load balancer hostname published in an Ingress status"""
    load_balancer = getattr(status, "load_balancer", None)
    ingresses = getattr(load_balancer, "ingress", None) or []
    for entry in ingresses:
        hostname = getattr(entry, "hostname", None)
        if hostname:
            return hostname
    raise RuntimeError(f"Ingress {INGRESS_NAME} has no load balancer hostname in its status")


def create_alb_ingress_resources(namespace: pulumi.Input[str], reader_service_name: pulumi.Input[str],
                                 cluster: aws.eks.Cluster, controller_release: pulumi.Resource,
                                 k8s_provider: k8s.Provider, stack_name: str, region: str,
                                 certificate_arn: Optional[str] = None,
                                 hosted_zone_id: Optional[str] = None,
                                 base_domain: Optional[str] = None,
                                 aws_provider: aws.Provider = None,
                                 depends_on: List[pulumi.Resource] = None) -> Dict[str, Any]:
    """
    Expose the reader through an ALB

    Args:
        namespace: Application namespace
        reader_service_name: Reader service name
        cluster: EKS cluster resource
        controller_release: Load balancer controller release
        k8s_provider: Kubernetes provider
        stack_name: Stack name
        region: AWS region
        certificate_arn: ACM certificate enabling HTTPS
        hosted_zone_id: Route53 zone for the alias record
        base_domain: Base domain for the alias record
        aws_provider: AWS provider
        depends_on: Extra dependencies (reader service)

    Returns:
        Dict with ingress, ALB hostname and the optional DNS record
    """
    ingress = k8s.networking.v1.Ingress(
        INGRESS_NAME,
        metadata=k8s.meta.v1.ObjectMetaArgs(
            name=INGRESS_NAME,
            namespace=namespace,
            annotations=build_ingress_annotations(certificate_arn)
        ),
        spec=k8s.networking.v1.IngressSpecArgs(
            rules=[
                k8s.networking.v1.IngressRuleArgs(
                    http=k8s.networking.v1.HTTPIngressRuleValueArgs(
                        paths=[
                            k8s.networking.v1.HTTPIngressPathArgs(
                                path=INGRESS_PATH,
                                path_type="Prefix",
                                backend=k8s.networking.v1.IngressBackendArgs(
                                    service=k8s.networking.v1.IngressServiceBackendArgs(
                                        name=reader_service_name,
                                        port=k8s.networking.v1.ServiceBackendPortArgs(
                                            number=READER_SERVICE_PORT
                                        )
                                    )
                                )
                            )
                        ]
                    )
                )
            ]
        ),
        opts=pulumi.ResourceOptions(
            provider=k8s_provider,
            depends_on=[cluster, controller_release, *(depends_on or [])]
        )
    )

    hostname = ingress.status.apply(_alb_hostname)

    dns_record = None
    if hosted_zone_id and base_domain:
        dns_record = create_route53_resources(
            hostname, hosted_zone_id, base_domain, stack_name, region, aws_provider
        )
    else:
        pulumi.log.info("hostedZoneId or domain not configured, skipping the ALB DNS record")

    return {
        "ingress": ingress,
        "hostname": hostname,
        "dns_record": dns_record
    }


def create_local_alb_ingress_resources(*args, **kwargs) -> Dict[str, Any]:
    raise RuntimeError("No ALB ingress locally: use kubectl port-forward to reach the reader")
