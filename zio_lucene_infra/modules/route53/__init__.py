"""
Route53 Module
DNS alias for the ingress ALB
"""

from .functions import (
    resolve_domain,
    create_route53_resources,
    create_local_route53_resources,
)

__all__ = [
    "resolve_domain",
    "create_route53_resources",
    "create_local_route53_resources",
]
