"""
Secret Sync Module Functions
External Secrets stores and the ExternalSecret that materialises the Datadog API key in the app namespace

ClusterSecretStore against AWS Secrets Manager on EKS, namespaced SecretStore
against LocalStack on k3d. The refresh interval bounds how long a rotated
secret takes to reach the cluster.
"""

import pulumi
import pulumi_kubernetes as k8s
from typing import Any, Dict, List, Optional

EXTERNAL_SECRETS_API_VERSION = "external-secrets.io/v1beta1"

CLUSTER_STORE_NAME = "aws-secretsmanager"
LOCAL_STORE_NAME = "localstack-secretsmanager"
LOCAL_CREDENTIALS_SECRET = "localstack-credentials"

DATADOG_SECRET_NAME = "datadog-api-key"
DATADOG_SECRET_KEY = "api-key"
REFRESH_INTERVAL = "1h"


def build_cluster_store_spec(region: str, service_account: str = None,
                             service_account_namespace: str = None) -> Dict[str, Any]:
    """
    Spec of a ClusterSecretStore reading AWS Secrets Manager

    With a service account the operator authenticates through its IRSA token,
    otherwise the AWS SDK default credential chain applies.
    """
    aws_provider: Dict[str, Any] = {
        "service": "SecretsManager",
        "region": region
    }

    if service_account:
        service_account_ref = {"name": service_account}
        if service_account_namespace:
            service_account_ref["namespace"] = service_account_namespace
        aws_provider["auth"] = {
            "jwt": {
                "serviceAccountRef": service_account_ref
            }
        }

    return {"provider": {"aws": aws_provider}}


def build_local_store_spec(region: str) -> Dict[str, Any]:
    """Spec of a SecretStore reading LocalStack with the static test credentials"""
    return {
        "provider": {
            "aws": {
                "service": "SecretsManager",
                "region": region,
                "auth": {
                    "secretRef": {
                        "accessKeyIDSecretRef": {
                            "name": LOCAL_CREDENTIALS_SECRET,
                            "key": "access-key"
                        },
                        "secretAccessKeySecretRef": {
                            "name": LOCAL_CREDENTIALS_SECRET,
                            "key": "secret-key"
                        }
                    }
                }
            }
        }
    }


def build_external_secret_spec(store_name: str, store_kind: str, remote_key: str) -> Dict[str, Any]:
    return {
        "refreshInterval": REFRESH_INTERVAL,
        "secretStoreRef": {
            "name": store_name,
            "kind": store_kind
        },
        "target": {
            "name": DATADOG_SECRET_NAME,
            "creationPolicy": "Owner"
        },
        "data": [
            {
                "secretKey": DATADOG_SECRET_KEY,
                "remoteRef": {
                    "key": remote_key
                }
            }
        ]
    }


def create_external_secret(namespace: pulumi.Input[str], store: pulumi.Resource, store_name: str,
                           store_kind: str, remote_key: str, provider: k8s.Provider,
                           depends_on: List[pulumi.Resource] = None) -> k8s.apiextensions.CustomResource:
    """
    Create the ExternalSecret syncing the Datadog API key

    Args:
        namespace: Namespace of the resulting Kubernetes Secret
        store: Secret store resource to wait for
        store_name: Name of the secret store
        store_kind: ClusterSecretStore or SecretStore
        remote_key: Secrets Manager secret name
        provider: Kubernetes provider
        depends_on: Extra dependencies (operator release)

    Returns:
        ExternalSecret custom resource
    """
    return k8s.apiextensions.CustomResource(
        DATADOG_SECRET_NAME,
        api_version=EXTERNAL_SECRETS_API_VERSION,
        kind="ExternalSecret",
        metadata=k8s.meta.v1.ObjectMetaArgs(
            name=DATADOG_SECRET_NAME,
            namespace=namespace
        ),
        spec=build_external_secret_spec(store_name, store_kind, remote_key),
        opts=pulumi.ResourceOptions(provider=provider, depends_on=[store, *(depends_on or [])])
    )


def create_secret_sync_resources(namespace: pulumi.Input[str], remote_key: str, region: str,
                                 provider: k8s.Provider,
                                 service_account: Optional[str] = None,
                                 service_account_namespace: Optional[str] = None,
                                 operator_release: pulumi.Resource = None) -> Dict[str, Any]:
    """
    Sync the Datadog API key from AWS Secrets Manager

    Args:
        namespace: Application namespace
        remote_key: Secrets Manager secret name
        region: AWS region of the secret
        provider: Kubernetes provider
        service_account: Operator service account bound to an IRSA role
        service_account_namespace: Namespace of that service account
        operator_release: Operator Helm release, installs the CRDs

    Returns:
        Dict with the store and the ExternalSecret
    """
    operator_deps = [operator_release] if operator_release is not None else []

    store = k8s.apiextensions.CustomResource(
        CLUSTER_STORE_NAME,
        api_version=EXTERNAL_SECRETS_API_VERSION,
        kind="ClusterSecretStore",
        metadata=k8s.meta.v1.ObjectMetaArgs(
            name=CLUSTER_STORE_NAME
        ),
        spec=build_cluster_store_spec(region, service_account, service_account_namespace),
        opts=pulumi.ResourceOptions(provider=provider, depends_on=operator_deps)
    )

    external_secret = create_external_secret(
        namespace, store, CLUSTER_STORE_NAME, "ClusterSecretStore", remote_key, provider, operator_deps
    )

    return {
        "secret_store": store,
        "external_secret": external_secret,
        "target_secret_name": DATADOG_SECRET_NAME
    }


def create_local_secret_sync_resources(namespace: pulumi.Input[str], remote_key: str, region: str,
                                       provider: k8s.Provider,
                                       operator_release: pulumi.Resource = None) -> Dict[str, Any]:
    """
    Sync the Datadog API key from LocalStack

    Args:
        namespace: Application namespace, also holds the LocalStack credentials
        remote_key: Secrets Manager secret name
        region: Region LocalStack emulates
        provider: Kubernetes provider
        operator_release: Operator Helm release, installs the CRDs

    Returns:
        Dict with the credentials secret, the store and the ExternalSecret
    """
    operator_deps = [operator_release] if operator_release is not None else []

    credentials = k8s.core.v1.Secret(
        LOCAL_CREDENTIALS_SECRET,
        metadata=k8s.meta.v1.ObjectMetaArgs(
            name=LOCAL_CREDENTIALS_SECRET,
            namespace=namespace
        ),
        type="Opaque",
        string_data={
            "access-key": "test",
            "secret-key": "test"
        },
        opts=pulumi.ResourceOptions(provider=provider)
    )

    store = k8s.apiextensions.CustomResource(
        LOCAL_STORE_NAME,
        api_version=EXTERNAL_SECRETS_API_VERSION,
        kind="SecretStore",
        metadata=k8s.meta.v1.ObjectMetaArgs(
            name=LOCAL_STORE_NAME,
            namespace=namespace
        ),
        spec=build_local_store_spec(region),
        opts=pulumi.ResourceOptions(provider=provider, depends_on=[credentials, *operator_deps])
    )

    external_secret = create_external_secret(
        namespace, store, LOCAL_STORE_NAME, "SecretStore", remote_key, provider, operator_deps
    )

    return {
        "credentials_secret": credentials,
        "secret_store": store,
        "external_secret": external_secret,
        "target_secret_name": DATADOG_SECRET_NAME
    }
