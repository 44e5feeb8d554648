"""
Route53 Module Functions
Alias record pointing the stack's domain at the ingress ALB
"""

import pulumi
import pulumi_aws as aws
from typing import Any, Dict

PROD_STACK_NAME = "prod"


def resolve_domain(stack_name: str, base_domain: str) -> str:
    """prod serves the bare domain, every other stack a <stack>. subdomain"""
    if not base_domain:
        raise ValueError("Base domain cannot be empty")
    if stack_name == PROD_STACK_NAME:
        return base_domain
    return f"{stack_name}.{base_domain}"


def create_route53_resources(alb_hostname: pulumi.Input[str], zone_id: str, base_domain: str,
                             stack_name: str, region: str,
                             provider: aws.Provider = None) -> Dict[str, Any]:
    """
    Create A alias record for the ALB

    Args:
        alb_hostname: DNS name of the ALB
        zone_id: Hosted zone receiving the record
        base_domain: Base domain
        stack_name: Stack name, selects the record name
        region: Region of the ALB
        provider: AWS provider

    Returns:
        Dict with the record and the resolved domain
    """
    if not zone_id:
        raise ValueError("Hosted zone id cannot be empty")

    domain = resolve_domain(stack_name, base_domain)

    # Canonical hosted zone of application load balancers in the region
    alb_zone = aws.lb.get_hosted_zone_id(
        load_balancer_type="application",
        region=region,
        opts=pulumi.InvokeOptions(provider=provider)
    )

    record = aws.route53.Record(
        f"alb-dns-record-{stack_name}",
        zone_id=zone_id,
        name=domain,
        type="A",
        aliases=[
            aws.route53.RecordAliasArgs(
                name=alb_hostname,
                zone_id=alb_zone.id,
                evaluate_target_health=True
            )
        ],
        opts=pulumi.ResourceOptions(provider=provider)
    )

    pulumi.log.info(f"Routing {domain} to the ingress load balancer")

    return {
        "record": record,
        "domain": domain,
        "fqdn": record.fqdn
    }


def create_local_route53_resources(*args, **kwargs) -> Dict[str, Any]:
    raise RuntimeError("No DNS record locally: use kubectl port-forward to reach the reader")
