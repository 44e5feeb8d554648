"""
Kubernetes Module Functions
Generic Kubernetes builders shared by the EKS and k3d stacks
"""

import pulumi
import pulumi_kubernetes as k8s
from typing import Any, Dict, List, Optional


def _check_name(name: Optional[str], kind: str) -> str:
    if not name:
        raise RuntimeError(f"Failed to get {kind} name from created {kind} resource")
    return name


def require_metadata_name(resource: pulumi.CustomResource, kind: str) -> pulumi.Output[str]:
    """
    Resolve metadata.name of a Kubernetes resource, failing the deployment when it is empty

    Args:
        resource: Kubernetes resource
        kind: Resource kind used in the error message

    Returns:
        Output with the resource name
    """
    return resource.metadata.apply(lambda meta: _check_name(getattr(meta, "name", None), kind))


def create_namespace(name: str, provider: k8s.Provider,
                     depends_on: List[pulumi.Resource] = None) -> Dict[str, Any]:
    """
    Create namespace

    Args:
        name: Namespace name
        provider: Kubernetes provider
        depends_on: Resources that must exist first (cluster, node group)

    Returns:
        Dict with namespace resource and its resolved name
    """
    if not name:
        raise ValueError(f"Namespace name cannot be empty. Provided: '{name}'")

    namespace = k8s.core.v1.Namespace(
        name,
        metadata=k8s.meta.v1.ObjectMetaArgs(
            name=name,
            labels={
                "name": name,
                "managed-by": "pulumi"
            }
        ),
        opts=pulumi.ResourceOptions(provider=provider, depends_on=depends_on or [])
    )

    return {
        "namespace": namespace,
        "namespace_name": require_metadata_name(namespace, "namespace")
    }


def create_headless_service(name: str, namespace: pulumi.Input[str], selector: Dict[str, str],
                            port: int, provider: k8s.Provider, port_name: str = "client",
                            target_port: int = None,
                            depends_on: List[pulumi.Resource] = None) -> k8s.core.v1.Service:
    """
    Create headless service (clusterIP None) giving StatefulSet pods stable DNS names

    Args:
        name: Service name
        namespace: Namespace name
        selector: Pod selector, also used as service labels
        port: Service port
        provider: Kubernetes provider
        port_name: Port name
        target_port: Container port, same as port when omitted
        depends_on: Resources that must exist first (namespace)

    Returns:
        Service resource
    """
    return k8s.core.v1.Service(
        f"{name}-service",
        metadata=k8s.meta.v1.ObjectMetaArgs(
            name=name,
            namespace=namespace,
            labels=selector
        ),
        spec=k8s.core.v1.ServiceSpecArgs(
            selector=selector,
            cluster_ip="None",
            ports=[
                k8s.core.v1.ServicePortArgs(
                    name=port_name,
                    port=port,
                    target_port=target_port or port
                )
            ]
        ),
        opts=pulumi.ResourceOptions(provider=provider, depends_on=depends_on or [])
    )


def build_env_vars(env_vars: Dict[str, pulumi.Input[str]]) -> List[k8s.core.v1.EnvVarArgs]:
    return [k8s.core.v1.EnvVarArgs(name=key, value=value) for key, value in env_vars.items()]


def create_stateful_set(name: str, namespace: pulumi.Input[str], service_name: str, image: str,
                        ports: Dict[str, int], provider: k8s.Provider,
                        env_vars: Dict[str, pulumi.Input[str]] = None,
                        volume_mounts: Dict[str, str] = None,
                        replicas: int = 1, storage_size: str = "1Gi",
                        storage_class_name: str = None,
                        image_pull_policy: str = None,
                        config_map_refs: List[pulumi.Input[str]] = None,
                        depends_on: List[pulumi.Resource] = None) -> k8s.apps.v1.StatefulSet:
    """
    Create single-container StatefulSet with a <name>-data volume claim template

    Args:
        name: StatefulSet name, also the app label and container name
        namespace: Namespace name
        service_name: Governing headless service
        image: Container image
        ports: Container ports by name
        provider: Kubernetes provider
        env_vars: Environment variables
        volume_mounts: Mount paths by volume name
        replicas: Number of pods
        storage_size: Size of each volume claim
        storage_class_name: Storage class, cluster default when omitted
        image_pull_policy: Image pull policy
        config_map_refs: ConfigMaps exposed to the container as environment
        depends_on: Extra dependencies

    Returns:
        StatefulSet resource
    """
    env_vars = env_vars or {}
    volume_mounts = volume_mounts or {}
    labels = {"app": name}

    return k8s.apps.v1.StatefulSet(
        f"{name}-statefulset",
        metadata=k8s.meta.v1.ObjectMetaArgs(
            name=name,
            namespace=namespace
        ),
        spec=k8s.apps.v1.StatefulSetSpecArgs(
            service_name=service_name,
            replicas=replicas,
            selector=k8s.meta.v1.LabelSelectorArgs(match_labels=labels),
            template=k8s.core.v1.PodTemplateSpecArgs(
                metadata=k8s.meta.v1.ObjectMetaArgs(labels=labels),
                spec=k8s.core.v1.PodSpecArgs(
                    containers=[
                        k8s.core.v1.ContainerArgs(
                            name=name,
                            image=image,
                            image_pull_policy=image_pull_policy,
                            ports=[
                                k8s.core.v1.ContainerPortArgs(name=port_name, container_port=port)
                                for port_name, port in ports.items()
                            ],
                            env=build_env_vars(env_vars),
                            env_from=[
                                k8s.core.v1.EnvFromSourceArgs(
                                    config_map_ref=k8s.core.v1.ConfigMapEnvSourceArgs(name=ref)
                                )
                                for ref in config_map_refs or []
                            ],
                            volume_mounts=[
                                k8s.core.v1.VolumeMountArgs(name=volume, mount_path=path)
                                for volume, path in volume_mounts.items()
                            ]
                        )
                    ]
                )
            ),
            volume_claim_templates=[
                k8s.core.v1.PersistentVolumeClaimArgs(
                    metadata=k8s.meta.v1.ObjectMetaArgs(name=f"{name}-data"),
                    spec=k8s.core.v1.PersistentVolumeClaimSpecArgs(
                        access_modes=["ReadWriteOnce"],
                        storage_class_name=storage_class_name,
                        resources=k8s.core.v1.VolumeResourceRequirementsArgs(
                            requests={"storage": storage_size}
                        )
                    )
                )
            ]
        ),
        opts=pulumi.ResourceOptions(provider=provider, depends_on=depends_on or [])
    )


def build_aws_auth_map_roles(node_role_arn: str) -> str:
    """mapRoles entry letting EC2 instances with the node role join the cluster"""
    return (
        f"- rolearn: {node_role_arn}\n"
        "  username: system:node:{{EC2PrivateDNSName}}\n"
        "  groups:\n"
        "    - system:bootstrappers\n"
        "    - system:nodes\n"
    )


def create_aws_auth_config_map(node_role_arn: pulumi.Output[str], cluster: pulumi.Resource,
                               provider: k8s.Provider) -> k8s.core.v1.ConfigMapPatch:
    """
    Patch kube-system/aws-auth so that worker nodes can join the cluster

    EKS creates the ConfigMap itself once a managed node group exists, so it is
    patched server-side instead of created.

    Args:
        node_role_arn: IAM role ARN of the worker nodes
        cluster: EKS cluster (or node group) to wait for
        provider: Kubernetes provider

    Returns:
        ConfigMapPatch resource
    """
    return k8s.core.v1.ConfigMapPatch(
        "aws-auth",
        metadata=k8s.meta.v1.ObjectMetaPatchArgs(
            name="aws-auth",
            namespace="kube-system",
            annotations={"pulumi.com/patchForce": "true"}
        ),
        data={
            "mapRoles": node_role_arn.apply(build_aws_auth_map_roles)
        },
        opts=pulumi.ResourceOptions(provider=provider, depends_on=[cluster])
    )
