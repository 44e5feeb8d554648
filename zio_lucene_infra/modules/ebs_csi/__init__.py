"""
EBS CSI Module
Persistent volume provisioning
"""

from .functions import (
    create_ebs_csi_resources,
    create_local_ebs_csi_resources,
)

__all__ = [
    "create_ebs_csi_resources",
    "create_local_ebs_csi_resources",
]
