import json
import logging
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlencode

from .models import (
    APIDefinition,
    Backend,
    BusinessInformation,
    CorsConfiguration,
    MaxTps,
    MediationPolicies,
    Sequence,
    VendorAPIDefinition,
)

logger = logging.getLogger(__name__)

# Appended to the tags of every API this tool creates
MARKER_TAG = 'wso2apim-ctrl'

# WSO2 APIM default CORS allow-lists
DEFAULT_CORS_ORIGINS = ['*']
DEFAULT_CORS_HEADERS = [
    'Authorization',
    'Access-Control-Allow-Origin',
    'Content-Type',
    'SOAPAction',
]
DEFAULT_CORS_METHODS = [
    'GET',
    'PUT',
    'POST',
    'DELETE',
    'PATCH',
    'OPTIONS',
]


def flatten_parameters(parameters: Dict[str, Any], prefix: str = '') -> List[Tuple[str, Any]]:
    """Flatten nested lists and dicts into bracketed keys: ``a[0]``, ``a[b]``."""
    pairs = []
    for key, value in parameters.items():
        name = f"{prefix}[{key}]" if prefix else str(key)
        if isinstance(value, dict):
            pairs.extend(flatten_parameters(value, name))
        elif isinstance(value, (list, tuple)):
            pairs.extend(flatten_parameters(dict(enumerate(value)), name))
        else:
            pairs.append((name, value))
    return pairs


def construct_backend_url(backend: Backend) -> Tuple[Optional[str], Optional[str]]:
    """Resolve the backend into ``(url, declared_type)``.

    HTTP wins when both backends are set. JMS backends are addressed as
    ``jms:/<destination>?<params>`` but are still declared as ``HTTP``, since
    the 2.6.0 publisher has no separate type for them.
    """
    if backend.http:
        return backend.http.base_url, 'HTTP'
    if backend.jms:
        url = None
        if backend.jms.destination:
            query = urlencode(flatten_parameters(backend.jms.parameters), safe='[]')
            url = f"jms:/{backend.jms.destination}?{query}"
        return url, 'HTTP'
    return None, None


def construct_endpoint_config(backend_url: Optional[str], endpoint_type: Optional[str]) -> str:
    def endpoint() -> Dict:
        if backend_url is None:
            return {'config': None}
        return {'url': backend_url, 'config': None}

    return json.dumps({
        'production_endpoints': endpoint(),
        'sandbox_endpoints': endpoint(),
        'endpoint_type': endpoint_type or 'http',
    })


def construct_mediation_policies(policies: Optional[MediationPolicies]) -> List[Sequence]:
    sequences = []
    if policies is None:
        return sequences
    for sequence_type, name in (('in', policies.in_), ('out', policies.out), ('fault', policies.fault)):
        if name:
            sequences.append(Sequence(name=name, type=sequence_type))
    return sequences


def construct_cors_configuration(api_def: APIDefinition) -> CorsConfiguration:
    cors = api_def.cors
    return CorsConfiguration(
        cors_configuration_enabled=True,
        access_control_allow_origins=cors.origins if cors.origins is not None else list(DEFAULT_CORS_ORIGINS),
        access_control_allow_credentials=cors.credentials if cors.credentials is not None else False,
        access_control_allow_headers=cors.headers if cors.headers is not None else list(DEFAULT_CORS_HEADERS),
        access_control_allow_methods=cors.methods if cors.methods is not None else list(DEFAULT_CORS_METHODS),
    )


def construct_business_information(swagger_spec: Dict) -> BusinessInformation:
    contact = (swagger_spec.get('info') or {}).get('contact') or {}
    email = contact.get('email') or None
    name = contact.get('name') or None
    return BusinessInformation(
        business_owner_email=email,
        technical_owner_email=email,
        technical_owner=name,
        business_owner=name,
    )


def construct_api_definition(user: str, gateway_env: str, api_def: APIDefinition,
                             api_id: Optional[str] = None) -> VendorAPIDefinition:
    """Map a logical API definition onto the publisher v0.14 API schema.

    Pure: no I/O, and identical arguments always produce an equal result.
    ``api_id`` is only set when updating an existing API.
    """
    backend_url, backend_type = construct_backend_url(api_def.backend)
    logger.debug(f"Mapping API {api_def.name}:{api_def.version} with backend {backend_url} ({backend_type})")

    return VendorAPIDefinition(
        id=api_id,
        name=api_def.name,
        description=api_def.description,
        context=api_def.root_context,
        version=api_def.version,
        provider=user,
        api_definition=json.dumps(api_def.swagger_spec, default=str),
        status='CREATED',
        is_default_version=False,
        type=backend_type,
        transport=['https'],
        tags=[*api_def.tags, MARKER_TAG],
        tiers=['Unlimited'],
        max_tps=MaxTps(sandbox=api_def.max_tps or None, production=api_def.max_tps or None),
        visibility=api_def.visibility,
        endpoint_config=construct_endpoint_config(backend_url, api_def.backend.endpoint_type),
        gateway_environments=gateway_env,
        sequences=construct_mediation_policies(api_def.mediation_policies),
        additional_properties=api_def.api_properties or None,
        subscription_availability='current_tenant',
        subscription_available_tenants=[],
        business_information=construct_business_information(api_def.swagger_spec),
        cors_configuration=construct_cors_configuration(api_def) if api_def.cors is not None else None,
    )
