"""
ALB Module
Load balancer controller and reader ingress
"""

from .functions import (
    create_alb_controller_resources,
    create_local_alb_controller_resources,
    create_alb_ingress_resources,
    create_local_alb_ingress_resources,
)

__all__ = [
    "create_alb_controller_resources",
    "create_local_alb_controller_resources",
    "create_alb_ingress_resources",
    "create_local_alb_ingress_resources",
]
