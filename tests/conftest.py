import json

import pytest
import requests

from wso2apim.apim260 import WSO2APIM260
from wso2apim.base import ConnectionConfig
from wso2apim.models import APIDefinition


def build_response(status_code=200, body=None, url="https://apim.example.com:9443/"):
    response = requests.Response()
    response.status_code = status_code
    response.url = url
    response.encoding = "utf-8"
    response._content = json.dumps(body).encode("utf-8") if body is not None else b""
    return response


@pytest.fixture
def respond():
    return build_response


@pytest.fixture
def config():
    return ConnectionConfig(
        host="apim.example.com",
        port=9443,
        version_slug="v0.14",
        user="admin",
        password="secret",
        gateway_env="Production and Sandbox",
    )


@pytest.fixture
def manager(config):
    return WSO2APIM260(config)


@pytest.fixture
def swagger_spec():
    return {
        "swagger": "2.0",
        "info": {
            "title": "Pets",
            "version": "1.0.0",
            "contact": {"name": "Jane Doe", "email": "jane@example.com"},
        },
        "paths": {"/pets": {"get": {"responses": {"200": {"description": "ok"}}}}},
    }


@pytest.fixture
def http_api_def(swagger_spec):
    return APIDefinition.model_validate({
        "name": "PetsAPI",
        "version": "v1",
        "rootContext": "/pets",
        "description": "Pet store",
        "tags": ["pets"],
        "visibility": "PUBLIC",
        "swaggerSpec": swagger_spec,
        "backend": {"http": {"baseUrl": "https://backend.example.com/pets"}},
    })


@pytest.fixture
def cert_file(tmp_path):
    path = tmp_path / "backend.pem"
    path.write_text("-----BEGIN CERTIFICATE-----\nMIIB\n-----END CERTIFICATE-----\n")
    return path
