"""
VPC Module
Network layout shared by the EKS cluster, the ALB and MSK
"""

from .functions import create_vpc_resources, create_local_vpc_resources

__all__ = ["create_vpc_resources", "create_local_vpc_resources"]
