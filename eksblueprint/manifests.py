"""
Kubernetes manifests for the hello service.

The deploy stage of the pipeline renders these with the freshly pushed image
and applies them with ``kubectl apply -f -``. The namespace and the IRSA
service account are owned by the cluster stack; they are referenced here, not
created.
"""

from typing import Any, Dict, List, Optional

import yaml

from eksblueprint.config.settings import BlueprintSettings
from eksblueprint.constants import APP_NAME, APP_NAMESPACE, APP_SERVICE_ACCOUNT

EXTERNAL_PORT = 80


def _labels() -> Dict[str, str]:
    return {"app.kubernetes.io/name": APP_NAME}


def render_deployment(settings: BlueprintSettings, image: str, replicas: Optional[int] = None) -> Dict[str, Any]:
    """
    Render the Deployment for the service.

    Args:
        settings: Deployment settings (port, version, message)
        image: Fully qualified image reference including tag or digest
        replicas: Replica count override

    Returns:
        Deployment manifest as a dict
    """
    port = settings.app_port
    health_check = {
        "httpGet": {"path": "/health", "port": port},
        "initialDelaySeconds": 5,
        "periodSeconds": 10,
    }
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {"name": APP_NAME, "namespace": APP_NAMESPACE, "labels": _labels()},
        "spec": {
            "replicas": replicas if replicas is not None else settings.app_replicas,
            "selector": {"matchLabels": _labels()},
            "template": {
                "metadata": {"labels": _labels()},
                "spec": {
                    "serviceAccountName": APP_SERVICE_ACCOUNT,
                    "containers": [
                        {
                            "name": APP_NAME,
                            "image": image,
                            "ports": [{"containerPort": port, "name": "http"}],
                            "env": [
                                {"name": "APP_PORT", "value": str(port)},
                                {"name": "APP_VERSION", "value": settings.app_version},
                                {"name": "APP_MESSAGE", "value": settings.app_message},
                                {"name": "ENVIRONMENT", "value": settings.environment},
                            ],
                            "livenessProbe": health_check,
                            "readinessProbe": health_check,
                            "resources": {
                                "requests": {"cpu": "50m", "memory": "64Mi"},
                                "limits": {"cpu": "250m", "memory": "128Mi"},
                            },
                        }
                    ],
                },
            },
        },
    }


def render_service(settings: BlueprintSettings) -> Dict[str, Any]:
    """Render the LoadBalancer Service exposing port 80 externally."""
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": {"name": APP_NAME, "namespace": APP_NAMESPACE, "labels": _labels()},
        "spec": {
            "type": "LoadBalancer",
            "selector": _labels(),
            "ports": [
                {
                    "name": "http",
                    "port": EXTERNAL_PORT,
                    "targetPort": settings.app_port,
                    "protocol": "TCP",
                }
            ],
        },
    }


def render_manifests(settings: BlueprintSettings, image: str, replicas: Optional[int] = None) -> List[Dict[str, Any]]:
    return [render_deployment(settings, image, replicas), render_service(settings)]


def to_yaml(manifests: List[Dict[str, Any]]) -> str:
    """Serialize manifests as a multi-document YAML stream."""
    return yaml.safe_dump_all(manifests, sort_keys=False, default_flow_style=False)
