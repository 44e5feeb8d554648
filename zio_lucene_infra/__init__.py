"""
zio-lucene infrastructure
Pulumi program provisioning the search service on EKS (dev, prod) or k3d with LocalStack (local)
"""

__version__ = "0.1.0"
