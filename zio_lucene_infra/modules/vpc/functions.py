"""
VPC Module Functions
Creates VPC, public/private subnets, internet and NAT gateways and route tables for EKS and MSK
"""

import pulumi
import pulumi_aws as aws
from typing import Any, Dict, List


def create_vpc(name: str, cidr: str, provider: aws.Provider = None,
               tags: Dict[str, str] = None) -> Dict[str, Any]:
    """
    Create VPC with DNS settings

    Args:
        name: Resource name prefix
        cidr: VPC CIDR block
        provider: AWS provider
        tags: Additional tags

    Returns:
        Dict with vpc resource and outputs
    """
    tags = tags or {}

    vpc = aws.ec2.Vpc(
        f"{name}-vpc",
        cidr_block=cidr,
        enable_dns_hostnames=True,
        enable_dns_support=True,
        tags={
            **tags,
            "Name": f"{name}-vpc",
            "Module": "vpc"
        },
        opts=pulumi.ResourceOptions(provider=provider)
    )

    return {
        "vpc": vpc,
        "vpc_id": vpc.id,
        "vpc_cidr_block": vpc.cidr_block
    }


def create_internet_gateway(name: str, vpc_id: pulumi.Output[str], provider: aws.Provider = None,
                            tags: Dict[str, str] = None) -> Dict[str, Any]:
    """
    Create Internet Gateway for VPC

    Args:
        name: Resource name prefix
        vpc_id: VPC ID to attach to
        provider: AWS provider
        tags: Additional tags

    Returns:
        Dict with igw resource and outputs
    """
    tags = tags or {}

    igw = aws.ec2.InternetGateway(
        f"{name}-igw",
        vpc_id=vpc_id,
        tags={
            **tags,
            "Name": f"{name}-igw",
            "Module": "vpc"
        },
        opts=pulumi.ResourceOptions(provider=provider)
    )

    return {
        "igw": igw,
        "igw_id": igw.id
    }


def create_subnets(name: str, vpc: aws.ec2.Vpc, subnet_cidrs: List[str], availability_zones: List[str],
                   public: bool, provider: aws.Provider = None,
                   tags: Dict[str, str] = None) -> Dict[str, Any]:
    """
    Create one subnet per CIDR, spread across the given availability zones

    Public subnets auto-assign public IPs and carry the ELB role tag; private
    subnets carry the internal ELB role tag.

    Args:
        name: Resource name prefix
        vpc: VPC resource
        subnet_cidrs: List of CIDR blocks
        availability_zones: List of availability zones, one per CIDR
        public: Whether the subnets are public
        provider: AWS provider
        tags: Additional tags

    Returns:
        Dict with subnet resources and outputs
    """
    tags = tags or {}
    kind = "public" if public else "private"
    role_tag = "kubernetes.io/role/elb" if public else "kubernetes.io/role/internal-elb"

    if len(subnet_cidrs) > len(availability_zones):
        raise ValueError(
            f"{len(subnet_cidrs)} {kind} subnets requested but only {len(availability_zones)} availability zones given"
        )

    subnets = []
    for i, cidr in enumerate(subnet_cidrs):
        subnet = aws.ec2.Subnet(
            f"{name}-{kind}-subnet-{i+1}",
            vpc_id=vpc.id,
            cidr_block=cidr,
            availability_zone=availability_zones[i],
            map_public_ip_on_launch=public,
            tags={
                **tags,
                "Name": f"{name}-{kind}-subnet-{i+1}",
                "Type": kind,
                f"kubernetes.io/cluster/{name}-cluster": "shared",
                role_tag: "1",
                "Module": "vpc"
            },
            opts=pulumi.ResourceOptions(provider=provider, depends_on=[vpc])
        )
        subnets.append(subnet)

    return {
        "subnets": subnets,
        "subnet_ids": [subnet.id for subnet in subnets]
    }


def create_nat_gateway(name: str, public_subnet_id: pulumi.Output[str], provider: aws.Provider = None,
                       tags: Dict[str, str] = None) -> Dict[str, Any]:
    """
    Create NAT gateway with an elastic IP in a public subnet

    Args:
        name: Resource name prefix
        public_subnet_id: Public subnet hosting the gateway
        provider: AWS provider
        tags: Additional tags

    Returns:
        Dict with eip and nat gateway resources
    """
    tags = tags or {}

    eip = aws.ec2.Eip(
        f"{name}-nat-eip",
        domain="vpc",
        tags={
            **tags,
            "Name": f"{name}-nat-eip",
            "Module": "vpc"
        },
        opts=pulumi.ResourceOptions(provider=provider)
    )

    nat_gateway = aws.ec2.NatGateway(
        f"{name}-nat",
        subnet_id=public_subnet_id,
        allocation_id=eip.id,
        tags={
            **tags,
            "Name": f"{name}-nat",
            "Module": "vpc"
        },
        opts=pulumi.ResourceOptions(provider=provider, depends_on=[eip])
    )

    return {
        "eip": eip,
        "nat_gateway": nat_gateway,
        "nat_gateway_id": nat_gateway.id
    }


def create_route_table(name: str, kind: str, vpc_id: pulumi.Output[str], subnet_ids: List[pulumi.Output[str]],
                       gateway_id: pulumi.Output[str] = None, nat_gateway_id: pulumi.Output[str] = None,
                       depends_on: List[pulumi.Resource] = None, provider: aws.Provider = None,
                       tags: Dict[str, str] = None) -> Dict[str, Any]:
    """
    Create route table with a default route and subnet associations

    Exactly one of gateway_id (public) or nat_gateway_id (private) must be set.

    Args:
        name: Resource name prefix
        kind: "public" or "private"
        vpc_id: VPC ID
        subnet_ids: Subnets to associate
        gateway_id: Internet gateway for the default route
        nat_gateway_id: NAT gateway for the default route
        depends_on: Extra dependencies for the route table
        provider: AWS provider
        tags: Additional tags

    Returns:
        Dict with route table resources and outputs
    """
    tags = tags or {}
    if (gateway_id is None) == (nat_gateway_id is None):
        raise ValueError(f"{kind} route table needs exactly one of gateway_id or nat_gateway_id")

    route_table = aws.ec2.RouteTable(
        f"{name}-{kind}-rt",
        vpc_id=vpc_id,
        tags={
            **tags,
            "Name": f"{name}-{kind}-rt",
            "Module": "vpc"
        },
        opts=pulumi.ResourceOptions(provider=provider, depends_on=depends_on or [])
    )

    route = aws.ec2.Route(
        f"{name}-{kind}-route",
        route_table_id=route_table.id,
        destination_cidr_block="0.0.0.0/0",
        gateway_id=gateway_id,
        nat_gateway_id=nat_gateway_id,
        opts=pulumi.ResourceOptions(provider=provider, depends_on=[route_table])
    )

    associations = []
    for i, subnet_id in enumerate(subnet_ids):
        association = aws.ec2.RouteTableAssociation(
            f"{name}-{kind}-rta-{i+1}",
            subnet_id=subnet_id,
            route_table_id=route_table.id,
            opts=pulumi.ResourceOptions(provider=provider, depends_on=[route_table])
        )
        associations.append(association)

    return {
        "route_table": route_table,
        "route": route,
        "associations": associations,
        "route_table_id": route_table.id
    }


def create_vpc_resources(name_prefix: str, vpc_cidr: str, public_subnet_cidrs: List[str],
                         private_subnet_cidrs: List[str], availability_zones: List[str],
                         provider: aws.Provider = None, tags: Dict[str, str] = None) -> Dict[str, Any]:
    """
    Create complete VPC: public subnets for EKS nodes and the ALB, private subnets behind NAT for MSK

    Args:
        name_prefix: Resource name prefix
        vpc_cidr: VPC CIDR block
        public_subnet_cidrs: Public subnet CIDR blocks
        private_subnet_cidrs: Private subnet CIDR blocks
        availability_zones: Availability zones, one per subnet pair
        provider: AWS provider
        tags: Additional tags for all resources

    Returns:
        Dict with all VPC resources and outputs
    """
    tags = tags or {}

    vpc_result = create_vpc(name_prefix, vpc_cidr, provider, tags)
    vpc = vpc_result["vpc"]

    igw_result = create_internet_gateway(name_prefix, vpc_result["vpc_id"], provider, tags)

    public_result = create_subnets(
        name_prefix, vpc, public_subnet_cidrs, availability_zones,
        public=True, provider=provider, tags=tags
    )
    private_result = create_subnets(
        name_prefix, vpc, private_subnet_cidrs, availability_zones,
        public=False, provider=provider, tags=tags
    )

    nat_result = create_nat_gateway(name_prefix, public_result["subnet_ids"][0], provider, tags)

    public_rt_result = create_route_table(
        name_prefix,
        "public",
        vpc_result["vpc_id"],
        public_result["subnet_ids"],
        gateway_id=igw_result["igw_id"],
        depends_on=[vpc],
        provider=provider,
        tags=tags
    )

    private_rt_result = create_route_table(
        name_prefix,
        "private",
        vpc_result["vpc_id"],
        private_result["subnet_ids"],
        nat_gateway_id=nat_result["nat_gateway_id"],
        depends_on=[nat_result["nat_gateway"], *private_result["subnets"]],
        provider=provider,
        tags=tags
    )

    return {
        "vpc_id": vpc_result["vpc_id"],
        "vpc_cidr_block": vpc_result["vpc_cidr_block"],
        "public_subnet_ids": public_result["subnet_ids"],
        "private_subnet_ids": private_result["subnet_ids"],
        "availability_zones": availability_zones,
        "nat_gateway_id": nat_result["nat_gateway_id"],
        # Keep references to all resources for dependencies
        "vpc": vpc,
        "internet_gateway": igw_result["igw"],
        "public_subnets": public_result["subnets"],
        "private_subnets": private_result["subnets"],
        "nat_gateway": nat_result["nat_gateway"],
        "public_route_table": public_rt_result["route_table"],
        "private_route_table": private_rt_result["route_table"]
    }


def create_local_vpc_resources(*args, **kwargs) -> Dict[str, Any]:
    raise RuntimeError("No VPC is needed locally: k3d provides the cluster network")
