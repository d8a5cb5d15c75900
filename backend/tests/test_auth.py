from conftest import API


def test_missing_token(client):
    response = client.get(f"{API}/depots")
    assert response.status_code == 401
    assert response.json()["error"] == "access_token_missing"


def test_unknown_token(client):
    response = client.get(f"{API}/depots", headers={"Authorization": "Bearer nope"})
    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "invalid_token", "message": "Invalid access token"}


def test_revoked_token(client, run_db, viewer_headers):
    from sqlalchemy import update

    from dcc_sfa.models import ApiToken

    async def revoke(db):
        await db.execute(update(ApiToken).values(is_revoked=True))
        await db.commit()

    run_db(revoke)
    response = client.get(f"{API}/depots", headers=viewer_headers)
    assert response.status_code == 401
    assert response.json()["error"] == "token_revoked"


def test_limited_role_can_read_but_not_write(client, viewer_headers):
    assert client.get(f"{API}/depots", headers=viewer_headers).status_code == 200

    response = client.post(f"{API}/depots", headers=viewer_headers, json={"parent_id": 1, "name": "X"})
    assert response.status_code == 403
    body = response.json()
    assert body["error"] == "access_denied"
    assert body["required_permissions"] == ["depot_create"]

    assert client.get(f"{API}/invoices", headers=viewer_headers).status_code == 403


def test_current_user_and_permissions(api, client, viewer_headers):
    me = api("get", "/users/me").json()["data"]
    assert me["email"] == "admin@example.com"

    response = client.get(f"{API}/users/me/permissions", headers=viewer_headers)
    assert response.status_code == 200
    assert response.json()["data"] == {"role": "Depot Viewer", "permissions": ["depot_read"]}


def test_token_usage_is_recorded(client, run_db, viewer_headers):
    from sqlalchemy import select

    from dcc_sfa.models import ApiToken

    client.get(f"{API}/depots", headers=viewer_headers)

    async def last_used(db):
        result = await db.execute(select(ApiToken.last_used_at).where(ApiToken.token == "test-viewer-token"))
        return result.scalar()

    assert run_db(last_used) is not None


def test_expired_tokens_are_rejected_then_deactivated(client, run_db, session_factory, viewer_headers):
    import asyncio
    from datetime import datetime, timedelta

    from sqlalchemy import update

    from dcc_sfa.models import ApiToken
    from dcc_sfa.services.scheduler import deactivate_expired_tokens

    async def expire(db):
        await db.execute(
            update(ApiToken)
            .where(ApiToken.token == "test-viewer-token")
            .values(expires_at=datetime.utcnow() - timedelta(days=1))
        )
        await db.commit()

    run_db(expire)
    assert client.get(f"{API}/depots", headers=viewer_headers).json()["error"] == "token_expired"

    assert asyncio.run(deactivate_expired_tokens(session_factory)) == 1
    assert client.get(f"{API}/depots", headers=viewer_headers).json()["error"] == "token_inactive"
