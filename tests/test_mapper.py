import datetime
import json

from wso2apim.mapper import (
    DEFAULT_CORS_HEADERS,
    DEFAULT_CORS_METHODS,
    MARKER_TAG,
    construct_api_definition,
    construct_backend_url,
    construct_mediation_policies,
)
from wso2apim.models import APIDefinition, Backend, MediationPolicies


def _api_def(**overrides):
    data = {
        "name": "OrdersAPI",
        "version": "v2",
        "rootContext": "/orders",
        "swaggerSpec": {"swagger": "2.0", "info": {"title": "Orders"}},
        "backend": {"http": {"baseUrl": "http://orders.internal:8080"}},
    }
    data.update(overrides)
    return APIDefinition.model_validate(data)


def _endpoint_config(payload):
    return json.loads(payload["endpointConfig"])


class TestBackendResolution:
    def test_http_backend_copied_verbatim(self, http_api_def):
        payload = construct_api_definition("admin", "Production and Sandbox", http_api_def).to_payload()
        endpoints = _endpoint_config(payload)
        assert payload["type"] == "HTTP"
        assert endpoints["production_endpoints"]["url"] == "https://backend.example.com/pets"
        assert endpoints["sandbox_endpoints"]["url"] == "https://backend.example.com/pets"
        assert endpoints["endpoint_type"] == "http"

    def test_jms_backend_url_and_declared_type(self):
        api_def = _api_def(backend={"jms": {"destination": "D", "parameters": {"a": 1, "b": 2}}})
        payload = construct_api_definition("admin", "Production", api_def).to_payload()
        assert payload["type"] == "HTTP"
        assert _endpoint_config(payload)["production_endpoints"]["url"] == "jms:/D?a=1&b=2"

    def test_jms_parameters_are_url_encoded(self):
        backend = Backend.model_validate({
            "jms": {"destination": "orders", "parameters": {"transport.jms.DestinationType": "queue", "x": "a b"}}
        })
        url, backend_type = construct_backend_url(backend)
        assert url == "jms:/orders?transport.jms.DestinationType=queue&x=a+b"
        assert backend_type == "HTTP"

    def test_http_wins_when_both_backends_set(self):
        backend = Backend.model_validate({
            "http": {"baseUrl": "http://a"},
            "jms": {"destination": "q", "parameters": {}},
        })
        assert construct_backend_url(backend) == ("http://a", "HTTP")

    def test_missing_backend_leaves_url_out(self):
        api_def = _api_def(backend={})
        payload = construct_api_definition("admin", "Production", api_def).to_payload()
        endpoints = _endpoint_config(payload)
        assert "url" not in endpoints["production_endpoints"]
        assert endpoints["production_endpoints"]["config"] is None
        assert "type" not in payload

    def test_jms_nested_parameters_use_bracket_keys(self):
        backend = Backend.model_validate({
            "jms": {"destination": "q", "parameters": {"a": [1, 2], "b": {"c": "d"}, "e": "f"}}
        })
        url, _ = construct_backend_url(backend)
        assert url == "jms:/q?a[0]=1&a[1]=2&b[c]=d&e=f"

    def test_custom_endpoint_type(self):
        api_def = _api_def(backend={"http": {"baseUrl": "http://a"}, "endpointType": "address"})
        payload = construct_api_definition("admin", "Production", api_def).to_payload()
        assert _endpoint_config(payload)["endpoint_type"] == "address"


class TestMediationPolicies:
    def test_only_declared_sequences(self):
        sequences = construct_mediation_policies(MediationPolicies.model_validate({"in": "log_in", "fault": "json_fault"}))
        assert [(s.name, s.type) for s in sequences] == [("log_in", "in"), ("json_fault", "fault")]

    def test_no_policies(self, http_api_def):
        payload = construct_api_definition("admin", "Production", http_api_def).to_payload()
        assert payload["sequences"] == []

    def test_sequences_in_payload(self):
        api_def = _api_def(mediationPolicies={"in": "a", "out": "b", "fault": "c"})
        payload = construct_api_definition("admin", "Production", api_def).to_payload()
        assert payload["sequences"] == [
            {"name": "a", "type": "in"},
            {"name": "b", "type": "out"},
            {"name": "c", "type": "fault"},
        ]


class TestCorsConfiguration:
    def test_cors_omitted_when_not_declared(self, http_api_def):
        payload = construct_api_definition("admin", "Production", http_api_def).to_payload()
        assert "corsConfiguration" not in payload

    def test_only_origins_set_uses_defaults(self):
        api_def = _api_def(cors={"origins": ["https://app.example.com"]})
        cors = construct_api_definition("admin", "Production", api_def).to_payload()["corsConfiguration"]
        assert cors == {
            "corsConfigurationEnabled": True,
            "accessControlAllowOrigins": ["https://app.example.com"],
            "accessControlAllowCredentials": False,
            "accessControlAllowHeaders": DEFAULT_CORS_HEADERS,
            "accessControlAllowMethods": DEFAULT_CORS_METHODS,
        }

    def test_empty_cors_block_gets_all_defaults(self):
        api_def = _api_def(cors={})
        cors = construct_api_definition("admin", "Production", api_def).to_payload()["corsConfiguration"]
        assert cors["accessControlAllowOrigins"] == ["*"]
        assert len(cors["accessControlAllowHeaders"]) == 4
        assert len(cors["accessControlAllowMethods"]) == 6

    def test_caller_values_kept(self):
        api_def = _api_def(cors={"credentials": True, "headers": ["X-Trace"], "methods": ["GET"]})
        cors = construct_api_definition("admin", "Production", api_def).to_payload()["corsConfiguration"]
        assert cors["accessControlAllowCredentials"] is True
        assert cors["accessControlAllowHeaders"] == ["X-Trace"]
        assert cors["accessControlAllowMethods"] == ["GET"]


class TestFixedAndOptionalFields:
    def test_fixed_values(self, http_api_def):
        payload = construct_api_definition("admin", "Production and Sandbox", http_api_def).to_payload()
        assert payload["status"] == "CREATED"
        assert payload["isDefaultVersion"] is False
        assert payload["transport"] == ["https"]
        assert payload["tiers"] == ["Unlimited"]
        assert payload["subscriptionAvailability"] == "current_tenant"
        assert payload["subscriptionAvailableTenants"] == []
        assert payload["tags"] == ["pets", MARKER_TAG]
        assert payload["provider"] == "admin"
        assert payload["gatewayEnvironments"] == "Production and Sandbox"
        assert payload["endpointSecurity"] is None
        assert payload["context"] == "/pets"

    def test_swagger_serialized(self, http_api_def, swagger_spec):
        payload = construct_api_definition("admin", "Production", http_api_def).to_payload()
        assert json.loads(payload["apiDefinition"]) == swagger_spec

    def test_business_information_from_contact(self, http_api_def):
        info = construct_api_definition("admin", "Production", http_api_def).to_payload()["businessInformation"]
        assert info == {
            "businessOwnerEmail": "jane@example.com",
            "technicalOwnerEmail": "jane@example.com",
            "technicalOwner": "Jane Doe",
            "businessOwner": "Jane Doe",
        }

    def test_business_information_absent_without_contact(self):
        payload = construct_api_definition("admin", "Production", _api_def()).to_payload()
        assert payload["businessInformation"] == {}

    def test_max_tps_applied_to_both_tiers(self):
        payload = construct_api_definition("admin", "Production", _api_def(maxTps=100)).to_payload()
        assert payload["maxTps"] == {"sandbox": 100, "production": 100}

    def test_zero_max_tps_left_out(self):
        payload = construct_api_definition("admin", "Production", _api_def(maxTps=0)).to_payload()
        assert payload["maxTps"] == {}

    def test_swagger_with_date_values(self):
        api_def = _api_def(swaggerSpec={"swagger": "2.0", "info": {"title": "Orders", "version": datetime.date(2020, 1, 1)}})
        payload = construct_api_definition("admin", "Production", api_def).to_payload()
        assert json.loads(payload["apiDefinition"])["info"]["version"] == "2020-01-01"

    def test_max_tps_absent(self):
        payload = construct_api_definition("admin", "Production", _api_def()).to_payload()
        assert payload["maxTps"] == {}

    def test_additional_properties_only_when_non_empty(self):
        assert "additionalProperties" not in construct_api_definition(
            "admin", "Production", _api_def(apiProperties={})).to_payload()
        payload = construct_api_definition("admin", "Production", _api_def(apiProperties={"team": "core"})).to_payload()
        assert payload["additionalProperties"] == {"team": "core"}

    def test_id_only_on_update(self, http_api_def):
        assert "id" not in construct_api_definition("admin", "Production", http_api_def).to_payload()
        payload = construct_api_definition("admin", "Production", http_api_def, "abc-123").to_payload()
        assert payload["id"] == "abc-123"

    def test_caller_tags_not_mutated(self, http_api_def):
        construct_api_definition("admin", "Production", http_api_def)
        assert http_api_def.tags == ["pets"]


class TestIdempotence:
    def test_same_input_same_output(self, http_api_def):
        first = construct_api_definition("admin", "Production", http_api_def, "id-1")
        second = construct_api_definition("admin", "Production", http_api_def, "id-1")
        assert first == second
        assert first.to_payload() == second.to_payload()

    def test_with_every_optional_block(self):
        api_def = _api_def(
            cors={"origins": ["*"]},
            mediationPolicies={"in": "x"},
            maxTps=5,
            apiProperties={"k": "v"},
        )
        assert construct_api_definition("u", "e", api_def).to_payload() == \
            construct_api_definition("u", "e", api_def).to_payload()
