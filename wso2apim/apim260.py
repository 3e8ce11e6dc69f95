import base64
import logging
import os
from typing import Dict, Optional, Type

import requests
from requests_toolbelt import MultipartEncoder

from .base import BaseAPIManager, ConnectionConfig
from .errors import (
    APIManagerError,
    ErrorKind,
    RegistrationError,
    TokenError,
    build_error,
    render_error,
)
from .mapper import construct_api_definition
from .models import APIDefinition

logger = logging.getLogger(__name__)

CLIENT_NAME = 'wso2apim-ctrl'
TOKEN_SCOPE = ' '.join([
    'apim:api_create',
    'apim:api_publish',
    'apim:api_view',
    'apim:subscribe',
    'apim:tier_view',
    'apim:tier_manage',
    'apim:subscription_view',
    'apim:subscription_block',
])


def basic_auth_header(username: str, password: str) -> str:
    token = base64.b64encode(f"{username}:{password}".encode('utf-8')).decode('utf-8')
    return f"Basic {token}"


def bearer_auth_header(access_token: str) -> str:
    return f"Bearer {access_token}"


class WSO2APIM260(BaseAPIManager):
    """Client for the WSO2 API Manager 2.6.0 (REST API v0.14) management APIs.

    Holds only connection settings; access tokens are passed to every call
    and never stored.
    """

    def __init__(self, config: ConnectionConfig):
        super().__init__(config)
        self.base_url = config.base_url
        self.publisher_path = f"/api/am/publisher/{config.version_slug}"
        self.store_path = f"/api/am/store/{config.version_slug}"
        self.verify = config.verify
        if self.verify is False:
            logger.warning(f"TLS certificate verification is disabled for {self.base_url}")
        logger.debug(f"Initialized WSO2 APIM 2.6.0 client with URL: {self.base_url}")

    def _make_request(self, method: str, endpoint: str, authorization: str,
                      error_cls: Type[APIManagerError] = APIManagerError,
                      expected: Optional[Dict[int, ErrorKind]] = None,
                      headers: Optional[Dict] = None, **kwargs) -> requests.Response:
        """Issue one request and return the response, or raise a typed APIManagerError.

        Failures listed in ``expected`` are raised without being logged.
        """
        url = f"{self.base_url}{endpoint}"
        request_headers = {'Authorization': authorization}
        request_headers.update(headers or {})
        logger.debug(f"Making {method} request to {url}")

        try:
            response = requests.request(
                method,
                url,
                headers=request_headers,
                verify=self.verify,
                timeout=self.config.timeout,
                **kwargs
            )
            logger.debug(f"Response status code: {response.status_code}")
            response.raise_for_status()
            return response
        except requests.exceptions.RequestException as e:
            error = build_error(e, error_cls, expected)
            if not error.expected:
                render_error(error)
            raise error from e

    @staticmethod
    def _json(response: requests.Response) -> Dict:
        if not response.content:
            return {}
        try:
            return response.json()
        except requests.exceptions.JSONDecodeError:
            logger.warning(f"Response from {response.url} is not valid JSON. Status: {response.status_code}")
            return {}

    # --- Authentication ---

    def register_client(self) -> Dict:
        """Register an OAuth client for the admin user via dynamic client registration"""
        logger.debug(f"Registering client {CLIENT_NAME} for {self.config.user}")
        payload = {
            'clientName': CLIENT_NAME,
            'owner': self.config.user,
            'grantType': 'password refresh_token',
            'saasApp': True,
        }
        response = self._make_request(
            'POST',
            f'/client-registration/{self.config.version_slug}/register',
            basic_auth_header(self.config.user, self.config.password),
            error_cls=RegistrationError,
            headers={'Content-Type': 'application/json'},
            json=payload
        )
        return self._json(response)

    def generate_token(self, client_id: str, client_secret: str) -> Dict:
        """Get an access token with the password grant"""
        logger.debug(f"Generating access token for client {client_id}")
        response = self._make_request(
            'POST',
            '/oauth2/token',
            basic_auth_header(client_id, client_secret),
            error_cls=TokenError,
            headers={'Content-Type': 'application/x-www-form-urlencoded'},
            data={
                'grant_type': 'password',
                'username': self.config.user,
                'password': self.config.password,
                'scope': TOKEN_SCOPE,
            }
        )
        return {'accessToken': self._json(response).get('access_token')}

    # --- API definitions ---

    def is_api_deployed(self, access_token: str, api_name: str, api_version: str, api_context: str) -> Dict:
        """Search the publisher for an API by name, version and context"""
        query = f"name:{api_name} version:{api_version} context:{api_context}"
        response = self._make_request(
            'GET',
            f'{self.publisher_path}/apis',
            bearer_auth_header(access_token),
            params={'query': query}
        )
        return self._json(response)

    def create_api_def(self, access_token: str, api_def: APIDefinition) -> Dict:
        """Create a new API definition in the publisher"""
        payload = construct_api_definition(self.config.user, self.config.gateway_env, api_def).to_payload()
        logger.debug(f"Creating API with payload: {payload}")
        response = self._make_request(
            'POST',
            f'{self.publisher_path}/apis',
            bearer_auth_header(access_token),
            headers={'Content-Type': 'application/json'},
            json=payload
        )
        body = self._json(response)
        logger.info(f"API created successfully: {body.get('id', 'unknown')}")
        return {
            'apiId': body.get('id'),
            'apiName': body.get('name'),
            'apiContext': body.get('context'),
            'apiStatus': body.get('status'),
        }

    def update_api_def(self, access_token: str, api_def: APIDefinition, api_id: str) -> Dict:
        """Replace an existing API definition in the publisher"""
        payload = construct_api_definition(self.config.user, self.config.gateway_env, api_def, api_id).to_payload()
        logger.debug(f"Updating API {api_id} with payload: {payload}")
        response = self._make_request(
            'PUT',
            f'{self.publisher_path}/apis/{api_id}',
            bearer_auth_header(access_token),
            headers={'Content-Type': 'application/json'},
            json=payload
        )
        logger.info(f"API {api_id} updated successfully")
        return self._json(response)

    def publish_api_def(self, access_token: str, api_id: str) -> requests.Response:
        """Move an API definition to the Published lifecycle state"""
        response = self._make_request(
            'POST',
            f'{self.publisher_path}/apis/change-lifecycle',
            bearer_auth_header(access_token),
            params={'apiId': api_id, 'action': 'Publish'}
        )
        logger.info(f"API {api_id} published")
        return response

    def remove_api_def(self, access_token: str, api_id: str) -> Dict:
        """Delete an API definition from the publisher"""
        response = self._make_request(
            'DELETE',
            f'{self.publisher_path}/apis/{api_id}',
            bearer_auth_header(access_token)
        )
        logger.info(f"API {api_id} deleted successfully")
        return self._json(response)

    def list_invokable_api_url(self, access_token: str, api_id: str) -> Dict:
        """Get the store view of an API, including its invokable endpoint URLs"""
        response = self._make_request(
            'GET',
            f'{self.store_path}/apis/{api_id}',
            bearer_auth_header(access_token)
        )
        return self._json(response)

    # --- Backend certificates ---

    def is_cert_uploaded(self, access_token: str, cert_alias: str) -> Dict:
        """Raises CertificateNotFoundError (unlogged) when nothing is stored under the alias."""
        response = self._make_request(
            'GET',
            f'{self.publisher_path}/certificates/{cert_alias}',
            bearer_auth_header(access_token),
            expected={404: ErrorKind.CERT_NOT_FOUND}
        )
        return self._json(response)

    def upload_cert(self, access_token: str, cert_alias: str, cert_path: str, backend_url: str) -> requests.Response:
        """Raises CertificateExistsError (unlogged) when the alias is already taken."""
        with open(cert_path, 'rb') as cert_file:
            encoder = MultipartEncoder(fields={
                'certificate': (os.path.basename(cert_path), cert_file, 'application/octet-stream'),
                'alias': cert_alias,
                'endpoint': backend_url,
            })
            response = self._make_request(
                'POST',
                f'{self.publisher_path}/certificates',
                bearer_auth_header(access_token),
                expected={409: ErrorKind.CERT_EXISTS},
                headers={'Content-Type': encoder.content_type},
                data=encoder
            )
        logger.info(f"Certificate {cert_alias} uploaded for {backend_url}")
        return response

    def update_cert(self, access_token: str, cert_alias: str, cert_path: str) -> requests.Response:
        """Replace the certificate stored under an alias"""
        with open(cert_path, 'rb') as cert_file:
            encoder = MultipartEncoder(fields={
                'certificate': (os.path.basename(cert_path), cert_file, 'application/octet-stream'),
            })
            response = self._make_request(
                'PUT',
                f'{self.publisher_path}/certificates/{cert_alias}',
                bearer_auth_header(access_token),
                headers={'Content-Type': encoder.content_type},
                data=encoder
            )
        logger.info(f"Certificate {cert_alias} updated")
        return response

    def remove_cert(self, access_token: str, cert_alias: str) -> requests.Response:
        """Raises CertificateNotFoundError (unlogged) when nothing is stored under the alias."""
        response = self._make_request(
            'DELETE',
            f'{self.publisher_path}/certificates/{cert_alias}',
            bearer_auth_header(access_token),
            expected={404: ErrorKind.CERT_NOT_FOUND}
        )
        logger.info(f"Certificate {cert_alias} removed")
        return response

    def list_cert_info(self, access_token: str, cert_alias: str) -> Dict:
        """Get certificate metadata (validity, subject, endpoint) for an alias"""
        response = self._make_request(
            'GET',
            f'{self.publisher_path}/certificates/{cert_alias}',
            bearer_auth_header(access_token),
            headers={'Accept': 'application/json'}
        )
        return self._json(response)
