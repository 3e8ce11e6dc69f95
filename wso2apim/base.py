from abc import ABC, abstractmethod
from typing import Dict, Optional, Union

import requests
from pydantic import BaseModel, ConfigDict

from .models import APIDefinition


class ConnectionConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    host: str
    port: int = 9443
    version_slug: str = 'v0.14'
    user: str
    password: str
    gateway_env: str = 'Production and Sandbox'
    verify_ssl: bool = True
    cert_path: Optional[str] = None
    timeout: Optional[float] = 30

    @property
    def base_url(self) -> str:
        return f"https://{self.host}:{self.port}"

    @property
    def verify(self) -> Union[str, bool]:
        """Value handed to requests' ``verify``: a CA bundle path wins over the flag."""
        return self.cert_path if self.cert_path else self.verify_ssl


class BaseAPIManager(ABC):
    def __init__(self, config: ConnectionConfig):
        self.config = config

    @abstractmethod
    def register_client(self) -> Dict:
        """Register an OAuth client for the admin user"""
        pass

    @abstractmethod
    def generate_token(self, client_id: str, client_secret: str) -> Dict:
        """Exchange client credentials and admin password for an access token"""
        pass

    @abstractmethod
    def is_api_deployed(self, access_token: str, api_name: str, api_version: str, api_context: str) -> Dict:
        """Search the publisher for an API by name, version and context"""
        pass

    @abstractmethod
    def create_api_def(self, access_token: str, api_def: APIDefinition) -> Dict:
        """Create a new API definition"""
        pass

    @abstractmethod
    def update_api_def(self, access_token: str, api_def: APIDefinition, api_id: str) -> Dict:
        """Replace an existing API definition"""
        pass

    @abstractmethod
    def publish_api_def(self, access_token: str, api_id: str) -> requests.Response:
        """Move an API definition to the Published lifecycle state"""
        pass

    @abstractmethod
    def remove_api_def(self, access_token: str, api_id: str) -> Dict:
        """Delete an API definition"""
        pass

    @abstractmethod
    def list_invokable_api_url(self, access_token: str, api_id: str) -> Dict:
        """Get the store-facing view of an API, including its endpoint URLs"""
        pass

    @abstractmethod
    def is_cert_uploaded(self, access_token: str, cert_alias: str) -> Dict:
        """Look up a backend certificate by alias"""
        pass

    @abstractmethod
    def upload_cert(self, access_token: str, cert_alias: str, cert_path: str, backend_url: str) -> requests.Response:
        """Upload a backend certificate under a new alias"""
        pass

    @abstractmethod
    def update_cert(self, access_token: str, cert_alias: str, cert_path: str) -> requests.Response:
        """Replace the certificate stored under an alias"""
        pass

    @abstractmethod
    def remove_cert(self, access_token: str, cert_alias: str) -> requests.Response:
        """Delete the certificate stored under an alias"""
        pass

    @abstractmethod
    def list_cert_info(self, access_token: str, cert_alias: str) -> Dict:
        """Get certificate metadata (validity, subject, endpoint) for an alias"""
        pass
