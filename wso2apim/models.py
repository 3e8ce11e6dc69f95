from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts both snake_case names and the camelCase keys of deployment descriptors."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Logical API definition (caller side) ---

class HttpBackend(CamelModel):
    base_url: Optional[str] = None


class JmsBackend(CamelModel):
    destination: Optional[str] = None
    parameters: Dict[str, Any] = Field(default_factory=dict)


class Backend(CamelModel):
    http: Optional[HttpBackend] = None
    jms: Optional[JmsBackend] = None
    endpoint_type: Optional[str] = None


class MediationPolicies(CamelModel):
    in_: Optional[str] = Field(default=None, alias='in')
    out: Optional[str] = None
    fault: Optional[str] = None


class CorsPolicy(CamelModel):
    origins: Optional[List[str]] = None
    credentials: Optional[bool] = None
    headers: Optional[List[str]] = None
    methods: Optional[List[str]] = None


class APIDefinition(CamelModel):
    name: str
    version: str
    root_context: str
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    visibility: Optional[str] = None
    swagger_spec: Dict[str, Any] = Field(default_factory=dict)
    backend: Backend = Field(default_factory=Backend)
    mediation_policies: Optional[MediationPolicies] = None
    cors: Optional[CorsPolicy] = None
    max_tps: Optional[int] = None
    api_properties: Optional[Dict[str, Any]] = None


# --- Publisher v0.14 API definition (vendor side) ---

class MaxTps(CamelModel):
    sandbox: Optional[int] = None
    production: Optional[int] = None


class Sequence(CamelModel):
    name: str
    type: str


class BusinessInformation(CamelModel):
    business_owner_email: Optional[str] = None
    technical_owner_email: Optional[str] = None
    technical_owner: Optional[str] = None
    business_owner: Optional[str] = None


class CorsConfiguration(CamelModel):
    cors_configuration_enabled: bool = True
    access_control_allow_origins: List[str]
    access_control_allow_credentials: bool
    access_control_allow_headers: List[str]
    access_control_allow_methods: List[str]


class VendorAPIDefinition(CamelModel):
    id: Optional[str] = None
    name: str
    description: Optional[str] = None
    context: str
    version: str
    provider: str
    api_definition: str
    status: str = 'CREATED'
    is_default_version: bool = False
    type: Optional[str] = None
    transport: List[str] = Field(default_factory=lambda: ['https'])
    tags: List[str] = Field(default_factory=list)
    tiers: List[str] = Field(default_factory=lambda: ['Unlimited'])
    max_tps: MaxTps = Field(default_factory=MaxTps)
    visibility: Optional[str] = None
    endpoint_config: str
    gateway_environments: str
    sequences: List[Sequence] = Field(default_factory=list)
    additional_properties: Optional[Dict[str, Any]] = None
    subscription_availability: str = 'current_tenant'
    subscription_available_tenants: List[str] = Field(default_factory=list)
    business_information: BusinessInformation = Field(default_factory=BusinessInformation)
    cors_configuration: Optional[CorsConfiguration] = None

    def to_payload(self) -> Dict[str, Any]:
        """JSON body for the publisher API. Unset fields are left out, endpointSecurity is always null."""
        payload = self.model_dump(by_alias=True, exclude_none=True)
        payload['endpointSecurity'] = None
        return payload
