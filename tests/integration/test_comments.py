"""Integration tests for comment ownership."""

from typing import Any

import pytest
from httpx import AsyncClient


async def _log_with_comment(
    client: AsyncClient, tenants: Any, auth_headers: Any, author: Any
) -> tuple[str, str]:
    log = await client.post(
        "/logs",
        json={"client_id": str(tenants.client_x), "behavior_id": str(tenants.behavior_x), "intensity": 2},
        headers=auth_headers(tenants.staff_x),
    )
    log_id = log.json()["id"]
    comment = await client.post(
        f"/comments/log/{log_id}", json={"content": "Redirected successfully"}, headers=auth_headers(author)
    )
    assert comment.status_code == 201
    return log_id, comment.json()["id"]


@pytest.mark.asyncio
async def test_staff_edits_and_deletes_own_comment(
    client: AsyncClient, tenants: Any, auth_headers: Any, audit_rows: Any
) -> None:
    _, comment_id = await _log_with_comment(client, tenants, auth_headers, tenants.staff_x)
    headers = auth_headers(tenants.staff_x)

    edited = await client.put(f"/comments/{comment_id}", json={"content": "Edited"}, headers=headers)
    deleted = await client.delete(f"/comments/{comment_id}", headers=headers)

    assert edited.status_code == 200
    assert edited.json()["content"] == "Edited"
    assert deleted.status_code == 200
    actions = [row.action for row in await audit_rows(entity_id=comment_id)]
    assert actions == ["CREATE", "UPDATE", "DELETE"]


@pytest.mark.asyncio
async def test_staff_cannot_touch_another_staff_comment(
    client: AsyncClient, tenants: Any, auth_headers: Any, audit_rows: Any
) -> None:
    log_id, comment_id = await _log_with_comment(client, tenants, auth_headers, tenants.staff_x)
    headers = auth_headers(tenants.other_staff_x)

    edited = await client.put(f"/comments/{comment_id}", json={"content": "Not mine"}, headers=headers)
    deleted = await client.delete(f"/comments/{comment_id}", headers=headers)

    assert edited.status_code == 403
    assert deleted.status_code == 403
    listed = await client.get(f"/comments/log/{log_id}", headers=headers)
    assert [c["content"] for c in listed.json()] == ["Redirected successfully"]
    assert [row.action for row in await audit_rows(entity_id=comment_id)] == ["CREATE"]


@pytest.mark.asyncio
async def test_supervisor_moderates_any_comment(
    client: AsyncClient, tenants: Any, auth_headers: Any
) -> None:
    _, comment_id = await _log_with_comment(client, tenants, auth_headers, tenants.staff_x)
    headers = auth_headers(tenants.supervisor_x)

    edited = await client.put(f"/comments/{comment_id}", json={"content": "Clarified"}, headers=headers)
    deleted = await client.delete(f"/comments/{comment_id}", headers=headers)

    assert edited.status_code == 200
    assert deleted.status_code == 200


@pytest.mark.asyncio
async def test_foreign_supervisor_gets_not_found(
    client: AsyncClient, tenants: Any, auth_headers: Any
) -> None:
    _, comment_id = await _log_with_comment(client, tenants, auth_headers, tenants.staff_x)

    response = await client.delete(f"/comments/{comment_id}", headers=auth_headers(tenants.supervisor_y))

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_comments_listed_newest_first_with_author(
    client: AsyncClient, tenants: Any, auth_headers: Any
) -> None:
    log_id, _ = await _log_with_comment(client, tenants, auth_headers, tenants.staff_x)
    await client.post(
        f"/comments/log/{log_id}", json={"content": "Follow-up"}, headers=auth_headers(tenants.supervisor_x)
    )

    listed = await client.get(f"/comments/log/{log_id}", headers=auth_headers(tenants.staff_x))

    comments = listed.json()
    assert [c["content"] for c in comments] == ["Follow-up", "Redirected successfully"]
    assert comments[0]["author_name"] == "Sam Supervisor"
    assert comments[0]["author_role"] == "supervisor"


@pytest.mark.asyncio
async def test_deleting_log_removes_its_comments(
    client: AsyncClient, tenants: Any, auth_headers: Any
) -> None:
    log_id, comment_id = await _log_with_comment(client, tenants, auth_headers, tenants.staff_x)

    await client.delete(f"/logs/{log_id}", headers=auth_headers(tenants.supervisor_x))

    response = await client.put(
        f"/comments/{comment_id}", json={"content": "late"}, headers=auth_headers(tenants.supervisor_x)
    )
    assert response.status_code == 404
