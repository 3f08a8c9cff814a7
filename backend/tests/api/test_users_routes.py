"""User Routes — admin lookup by UUID through the identity provider."""

from app.core.errors import ConfigurationError, ResourceNotFoundError

from tests.fake_identity import USER_ID


async def test_get_user_by_id(client, fake_identity):
    res = await client.get(f"/users/{USER_ID}")
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["data"]["id"] == USER_ID
    assert fake_identity.calls == [("get_user_by_id", USER_ID)]


async def test_get_user_rejects_non_uuid(client, fake_identity):
    res = await client.get("/users/not-a-uuid")
    assert res.status_code == 400
    assert res.json()["details"][0]["field"] == "path.user_id"
    assert fake_identity.calls == []


async def test_get_user_not_found(client, fake_identity):
    fake_identity.errors["get_user_by_id"] = ResourceNotFoundError("User", USER_ID)
    res = await client.get(f"/users/{USER_ID}")
    assert res.status_code == 404
    assert res.json()["code"] == "RESOURCE_NOT_FOUND"


async def test_get_user_without_service_key(client, fake_identity):
    fake_identity.errors["get_user_by_id"] = ConfigurationError(
        "SUPABASE_SERVICE_ROLE_KEY is required for user lookups",
    )
    res = await client.get(f"/users/{USER_ID}")
    assert res.status_code == 500
    assert res.json()["code"] == "CONFIGURATION_ERROR"
