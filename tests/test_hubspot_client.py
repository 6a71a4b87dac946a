"""
Tests for the HubSpot client.
Uses responses library to mock HTTP requests to the HubSpot API.
"""

import json

import pytest
import requests
import responses

from common.exceptions import HubSpotAPIException, RecordNotFoundException, UpstreamException
from common.hubspot_client import HubSpotClient, OBJECT_ID_PROPERTY

API = "https://api.hubapi.com"


@pytest.fixture
def client():
    return HubSpotClient(
        access_token="hs-test-token",
        deal_properties=["concepto", "centro"],
        contact_properties=["firstname", "idnps"],
    )


def test_client_sets_bearer_header(client):
    assert client.session.headers["Authorization"] == "Bearer hs-test-token"
    assert client.timeout == 10.0


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

@responses.activate
def test_fetch_record_returns_first_match_properties(client):
    responses.add(
        responses.POST,
        f"{API}/crm/v3/objects/deals/search",
        json={
            "total": 1,
            "results": [{"id": "123", "properties": {"concepto": "A", "centro": "Store1"}}],
        },
        status=200,
    )

    data = client.fetch_record("deals", "123", ["concepto", "centro"])

    assert data == {"concepto": "A", "centro": "Store1"}
    sent = json.loads(responses.calls[0].request.body)
    assert sent["properties"] == ["concepto", "centro"]
    assert sent["filterGroups"] == [
        {"filters": [{"propertyName": OBJECT_ID_PROPERTY, "value": "123", "operator": "EQ"}]}
    ]
    assert responses.calls[0].request.headers["Authorization"] == "Bearer hs-test-token"


@responses.activate
def test_fetch_record_empty_results_raises_not_found(client):
    responses.add(
        responses.POST,
        f"{API}/crm/v3/objects/contacts/search",
        json={"total": 0, "results": []},
        status=200,
    )

    with pytest.raises(RecordNotFoundException) as exc_info:
        client.fetch_record("contacts", "999", ["firstname"])

    assert exc_info.value.record_type == "contacts"
    assert "contacts" in str(exc_info.value)
    assert "999" in str(exc_info.value)


@responses.activate
def test_fetch_record_http_error_raises_api_exception(client):
    responses.add(
        responses.POST,
        f"{API}/crm/v3/objects/deals/search",
        json={"status": "error", "message": "Authentication credentials not found"},
        status=401,
    )

    with pytest.raises(HubSpotAPIException) as exc_info:
        client.fetch_record("deals", "1", [])

    assert exc_info.value.status == 401
    assert exc_info.value.body["message"] == "Authentication credentials not found"


@responses.activate
def test_fetch_record_transport_error_raises_upstream(client):
    responses.add(
        responses.POST,
        f"{API}/crm/v3/objects/deals/search",
        body=requests.ConnectionError("connection reset"),
    )

    with pytest.raises(UpstreamException, match="HubSpot request failed"):
        client.fetch_record("deals", "1", [])


@responses.activate
def test_fetch_record_non_json_body_raises_api_exception(client):
    responses.add(
        responses.POST,
        f"{API}/crm/v3/objects/deals/search",
        body="<html>gateway</html>",
        status=200,
    )

    with pytest.raises(HubSpotAPIException) as exc_info:
        client.fetch_record("deals", "1", [])

    assert exc_info.value.status == 200
    assert exc_info.value.body == "<html>gateway</html>"


@responses.activate
def test_fetch_record_list_body_raises_api_exception(client):
    responses.add(
        responses.POST,
        f"{API}/crm/v3/objects/contacts/search",
        json=[{"id": "1"}],
        status=200,
    )

    with pytest.raises(HubSpotAPIException) as exc_info:
        client.fetch_record("contacts", "1", [])

    assert exc_info.value.details["body"] == [{"id": "1"}]


@responses.activate
def test_get_deal_and_contact_data_use_configured_properties(client):
    responses.add(
        responses.POST,
        f"{API}/crm/v3/objects/deals/search",
        json={"results": [{"properties": {"concepto": "A"}}]},
    )
    responses.add(
        responses.POST,
        f"{API}/crm/v3/objects/contacts/search",
        json={"results": [{"properties": {"firstname": "Jane"}}]},
    )

    assert client.get_deal_data("1") == {"concepto": "A"}
    assert client.get_contact_data("2") == {"firstname": "Jane"}

    assert json.loads(responses.calls[0].request.body)["properties"] == ["concepto", "centro"]
    assert json.loads(responses.calls[1].request.body)["properties"] == ["firstname", "idnps"]


# ---------------------------------------------------------------------------
# Update / writeback
# ---------------------------------------------------------------------------

@responses.activate
def test_update_record_patches_properties(client):
    responses.add(
        responses.PATCH,
        f"{API}/crm/v3/objects/contacts/222",
        json={"id": "222", "properties": {"idnps": "abc"}},
        status=200,
    )

    result = client.update_record("contacts", "222", {"idnps": "abc"})

    assert result["id"] == "222"
    assert json.loads(responses.calls[0].request.body) == {"properties": {"idnps": "abc"}}


@responses.activate
def test_write_back_propagates_errors(client):
    responses.add(
        responses.PATCH,
        f"{API}/crm/v3/objects/contacts/222",
        json={"message": "Property values were not valid"},
        status=400,
    )

    with pytest.raises(HubSpotAPIException) as exc_info:
        client.write_back("222", "contacts", {"fecha_encuesta": "05/03/2026"})

    assert exc_info.value.status == 400


def test_custom_api_base_is_normalized():
    client = HubSpotClient(access_token="t", api_base="https://hubspot.local/")
    assert client.api_base == "https://hubspot.local"
