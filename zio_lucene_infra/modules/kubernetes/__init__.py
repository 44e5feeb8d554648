"""
Kubernetes Module
Namespace, headless service, StatefulSet and aws-auth builders
"""

from .functions import (
    build_aws_auth_map_roles,
    build_env_vars,
    create_aws_auth_config_map,
    create_headless_service,
    create_namespace,
    create_stateful_set,
    require_metadata_name,
)

__all__ = [
    "build_aws_auth_map_roles",
    "build_env_vars",
    "create_aws_auth_config_map",
    "create_headless_service",
    "create_namespace",
    "create_stateful_set",
    "require_metadata_name",
]
