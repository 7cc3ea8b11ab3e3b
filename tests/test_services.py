"""Service binding parsing and Contrast binding lookup."""

from __future__ import annotations

import json

import pytest

from contrast_provisioner.provision.credentials import REQUIRED_KEYS, SERVICE_FILTER
from contrast_provisioner.provision.services import ServiceBindings, load_application_details
from tests.helpers import BASE_CREDENTIALS, vcap_services


def test_blank_vcap_services_has_no_bindings() -> None:
    assert len(ServiceBindings.from_json(None)) == 0
    assert len(ServiceBindings.from_json("  ")) == 0


def test_single_complete_binding_is_found() -> None:
    bindings = ServiceBindings.from_json(vcap_services(BASE_CREDENTIALS))
    assert bindings.one_service(SERVICE_FILTER, *REQUIRED_KEYS)
    found = bindings.find_service(SERVICE_FILTER, *REQUIRED_KEYS)
    assert found is not None
    assert found["credentials"]["api_key"] == "api_key_test"


@pytest.mark.parametrize("missing", REQUIRED_KEYS)
def test_binding_missing_required_key_does_not_match(missing: str) -> None:
    credentials = {key: value for key, value in BASE_CREDENTIALS.items() if key != missing}
    bindings = ServiceBindings.from_json(vcap_services(credentials))
    assert bindings.count_matching_services(SERVICE_FILTER, *REQUIRED_KEYS) == 0
    assert not bindings.one_service(SERVICE_FILTER, *REQUIRED_KEYS)
    assert bindings.find_service(SERVICE_FILTER, *REQUIRED_KEYS) is None


def test_multiple_bindings_are_not_a_single_match() -> None:
    bindings = ServiceBindings.from_json(vcap_services(BASE_CREDENTIALS, BASE_CREDENTIALS))
    assert bindings.count_matching_services(SERVICE_FILTER, *REQUIRED_KEYS) == 2
    assert not bindings.one_service(SERVICE_FILTER, *REQUIRED_KEYS)
    assert bindings.find_service(SERVICE_FILTER, *REQUIRED_KEYS) is None


def test_filter_matches_name_or_tag_for_user_provided_services() -> None:
    payload = {
        "user-provided": [
            {"name": "my-contrast-security", "tags": [], "credentials": dict(BASE_CREDENTIALS)},
            {"name": "db", "tags": ["contrast-security"], "credentials": {"uri": "postgres://x"}},
        ]
    }
    bindings = ServiceBindings.from_json(json.dumps(payload))
    assert len(bindings.candidates(SERVICE_FILTER)) == 2
    assert bindings.count_matching_services(SERVICE_FILTER) == 2
    assert not bindings.one_service(SERVICE_FILTER, *REQUIRED_KEYS)
    assert bindings.find_service(SERVICE_FILTER, *REQUIRED_KEYS) is None


def test_complete_binding_beside_partial_binding_is_not_applicable() -> None:
    partial = {key: value for key, value in BASE_CREDENTIALS.items() if key != "username"}
    bindings = ServiceBindings.from_json(vcap_services(BASE_CREDENTIALS, partial))

    assert bindings.count_matching_services(SERVICE_FILTER, *REQUIRED_KEYS) == 1
    assert not bindings.one_service(SERVICE_FILTER, *REQUIRED_KEYS)
    assert bindings.find_service(SERVICE_FILTER, *REQUIRED_KEYS) is None


def test_single_user_provided_binding_matched_by_tag() -> None:
    payload = {"user-provided": [{"name": "security", "tags": ["contrast-security"], "credentials": BASE_CREDENTIALS}]}
    bindings = ServiceBindings.from_json(json.dumps(payload))
    assert bindings.one_service(SERVICE_FILTER, *REQUIRED_KEYS)


def test_other_service_categories_are_ignored() -> None:
    bindings = ServiceBindings.from_json(vcap_services(BASE_CREDENTIALS, label="newrelic"))
    assert bindings.count_matching_services(SERVICE_FILTER, *REQUIRED_KEYS) == 0


@pytest.mark.parametrize("raw", ["{not json", "[]", '{"contrast-security": {}}'])
def test_malformed_vcap_services_raises(raw: str) -> None:
    with pytest.raises(ValueError):
        ServiceBindings.from_json(raw)


def test_application_details_parse_and_blank() -> None:
    assert load_application_details("") == {}
    assert load_application_details('{"application_name": "shop"}') == {"application_name": "shop"}
    with pytest.raises(ValueError):
        load_application_details("[1]")
