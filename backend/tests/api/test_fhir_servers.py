"""FHIR Servers routes: list/register contract, validation and failure masking.

Invariants:
    - POST with missing/empty/null name or url → 400, storage never called,
      whatever the body type or content type
    - POST success → 200 (not 201) with assigned id
    - Storage failures → fixed 500 message, raw error text never in body
    - GET returns storage order
"""

import pytest

from fhir_registry.core.errors import StorageError


async def test_list_empty_returns_empty_array(client):
    res = await client.get("/api/fhir/servers")
    assert res.status_code == 200
    assert res.json() == []


async def test_add_returns_200_with_assigned_id(client):
    res = await client.post(
        "/api/fhir/servers",
        json={"name": "HAPI", "url": "http://hapi.fhir.org/baseR4"},
    )
    assert res.status_code == 200
    body = res.json()
    assert body["name"] == "HAPI"
    assert body["url"] == "http://hapi.fhir.org/baseR4"
    assert isinstance(body["id"], int)


async def test_add_defaults_inactive_with_none_auth(client):
    res = await client.post(
        "/api/fhir/servers", json={"name": "HAPI", "url": "http://hapi"},
    )
    body = res.json()
    assert body["isActive"] is False
    assert body["hasAuth"] is True
    assert body["authType"] == "none"
    assert body["createdAt"]


async def test_add_never_returns_credentials(client):
    res = await client.post(
        "/api/fhir/servers",
        json={
            "name": "Secured",
            "url": "https://secure.example/fhir",
            "authConfig": {"type": "bearer", "token": "s3cret-token"},
        },
    )
    assert res.status_code == 200
    body = res.json()
    assert body["hasAuth"] is True
    assert body["authType"] == "bearer"
    assert "s3cret-token" not in res.text
    assert "authConfig" not in body


async def test_list_preserves_insertion_order(client):
    await client.post("/api/fhir/servers", json={"name": "A", "url": "http://a"})
    await client.post("/api/fhir/servers", json={"name": "B", "url": "http://b"})

    res = await client.get("/api/fhir/servers")

    assert res.status_code == 200
    assert [s["name"] for s in res.json()] == ["A", "B"]


async def test_malformed_url_is_accepted(client):
    res = await client.post(
        "/api/fhir/servers", json={"name": "Odd", "url": "not a url"},
    )
    assert res.status_code == 200
    assert res.json()["url"] == "not a url"


@pytest.mark.parametrize("payload", [
    {},
    {"name": "Only name"},
    {"url": "http://only-url"},
    {"name": "", "url": "http://x"},
    {"name": "X", "url": ""},
    {"name": None, "url": "http://x"},
    {"name": "X", "url": None},
    None,
])
async def test_add_missing_fields_returns_400_without_storage_call(
    fake_client, fake_storage, payload,
):
    if payload is None:
        res = await fake_client.post("/api/fhir/servers")
    else:
        res = await fake_client.post("/api/fhir/servers", json=payload)

    assert res.status_code == 400
    assert res.json() == {"error": "Name and URL are required"}
    assert fake_storage.calls_to("add_fhir_server") == 0


@pytest.mark.parametrize("payload", [
    ["name", "url"],
    "text",
    42,
    {"name": 5},
    {"url": ["http://x"]},
    {"name": False, "url": "http://x"},
])
async def test_add_non_object_or_wrong_typed_body_returns_fields_required(
    fake_client, fake_storage, payload,
):
    res = await fake_client.post("/api/fhir/servers", json=payload)

    assert res.status_code == 400
    assert res.json() == {"error": "Name and URL are required"}
    assert fake_storage.calls_to("add_fhir_server") == 0


async def test_add_form_encoded_body_returns_fields_required(fake_client, fake_storage):
    res = await fake_client.post(
        "/api/fhir/servers", data={"name": "a", "url": "http://x"},
    )

    assert res.status_code == 400
    assert res.json() == {"error": "Name and URL are required"}
    assert fake_storage.calls_to("add_fhir_server") == 0


async def test_add_accepts_any_truthy_name_and_url(client):
    res = await client.post("/api/fhir/servers", json={"name": 5, "url": "http://x"})

    assert res.status_code == 200
    assert res.json()["name"] == "5"


async def test_add_stores_non_object_auth_config(client):
    res = await client.post(
        "/api/fhir/servers",
        json={"name": "a", "url": "http://x", "authConfig": "none"},
    )

    assert res.status_code == 200
    body = res.json()
    assert body["hasAuth"] is True
    assert body["authType"] == "none"



async def test_list_storage_failure_is_masked(fake_client, fake_storage):
    fake_storage.fail_with = RuntimeError("connection refused at 10.0.0.5:5432")

    res = await fake_client.get("/api/fhir/servers")

    assert res.status_code == 500
    assert res.json() == {"error": "Failed to fetch FHIR servers"}
    assert "10.0.0.5" not in res.text


async def test_list_storage_error_with_status_still_500(fake_client, fake_storage):
    fake_storage.fail_with = StorageError("Connection or operational error", "execute")

    res = await fake_client.get("/api/fhir/servers")

    assert res.status_code == 500
    assert res.json() == {"error": "Failed to fetch FHIR servers"}


async def test_add_storage_failure_is_masked(fake_client, fake_storage):
    fake_storage.fail_with = RuntimeError("duplicate key value violates constraint")

    res = await fake_client.post(
        "/api/fhir/servers", json={"name": "X", "url": "http://x"},
    )

    assert res.status_code == 500
    assert res.json() == {"error": "Failed to add FHIR server"}
    assert "duplicate key" not in res.text
    assert fake_storage.calls_to("add_fhir_server") == 1


async def test_add_passes_name_url_and_default_auth_to_storage(
    fake_client, fake_storage,
):
    await fake_client.post(
        "/api/fhir/servers", json={"name": "X", "url": "http://x"},
    )

    stored = fake_storage.servers[0]
    assert stored.name == "X"
    assert stored.url == "http://x"
    assert stored.auth_config == {"type": "none"}
    assert stored.is_active is False


async def test_add_malformed_json_returns_validation_error(fake_client, fake_storage):
    res = await fake_client.post(
        "/api/fhir/servers",
        content=b'{"name": ',
        headers={"Content-Type": "application/json"},
    )

    assert res.status_code == 400
    assert res.json()["error"] == "Invalid request data"
    assert fake_storage.calls_to("add_fhir_server") == 0
