import inspect
import json
from typing import Any, Dict

from kubernetes.client import ApiClient

JSON_CONTENT_TYPE = "application/json"


class _JsonResponse:
    """Minimal stand-in for a REST response, which is what the two-argument ApiClient.deserialize reads."""

    def __init__(self, text: str):
        self.data = text


def to_model(api_client: ApiClient, data: Dict[str, Any], model_name: str):
    """
    Build an OpenAPI model (e.g. "V1Endpoints") from a plain document.

    Clients generated since kubernetes 37 take the response text and its content type,
    older ones a response object carrying the text in ``data``.

    :param api_client: Client whose deserializer knows the model classes
    :param data: Document as parsed from YAML or JSON
    :param model_name: Model class name
    """
    text = json.dumps(data)
    if _takes_content_type(api_client):
        return api_client.deserialize(text, model_name, JSON_CONTENT_TYPE)
    return api_client.deserialize(_JsonResponse(text), model_name)


def to_dict(api_client: ApiClient, model) -> Any:
    """Serialize a model (or a nested structure of models) the way it is sent on the wire."""
    return api_client.sanitize_for_serialization(model)


def _takes_content_type(api_client: ApiClient) -> bool:
    return 'content_type' in inspect.signature(api_client.deserialize).parameters
