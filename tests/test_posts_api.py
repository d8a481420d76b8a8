"""
帖子API测试：发布、信息流、编辑、删除、参与、取消、踢人、参与者名单
"""
import pytest

from tests.conftest import auth_headers, create_user


async def publish(client, user, **body):
    payload = {"content": "study session", **body}
    response = await client.post("/api/posts", json=payload, headers=auth_headers(user))
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestCreateAndRead:
    """发布与读取"""

    async def test_create_returns_empty_post_view(self, client, alice):
        post = await publish(
            client, alice,
            content="周五羽毛球",
            eventTime="2026-11-06T19:00:00",
            duration=120,
            location="体育馆",
            targetPeople=3,
            tags=["运动", "羽毛球"],
        )
        assert post["content"] == "周五羽毛球"
        assert post["duration"] == 120
        assert post["targetPeople"] == 3
        assert post["tags"] == ["运动", "羽毛球"]
        assert post["hasParticipated"] is False
        assert post["participantsCount"] == 0
        assert post["author"]["nickname"] == "Alice"
        assert post["author"]["id"] == alice.id

    @pytest.mark.parametrize("body", [
        {"content": ""},
        {"content": "   "},
        {"content": "x", "duration": 0},
        {"content": "x", "targetPeople": -1},
        {"content": "x", "tags": "not-a-list"},
        {"content": "x", "eventTime": "not-a-date"},
        {},
    ])
    async def test_create_validation_errors_are_400(self, client, alice, body):
        response = await client.post("/api/posts", json=body, headers=auth_headers(alice))
        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    async def test_read_missing_post_is_404(self, client, bob):
        response = await client.get("/api/posts/999", headers=auth_headers(bob))
        assert response.status_code == 404
        assert response.json()["error_code"] == "POST_NOT_FOUND"

    async def test_feed_is_newest_first(self, client, alice, bob):
        first = await publish(client, alice, content="第一条")
        second = await publish(client, bob, content="第二条")

        response = await client.get("/api/posts", headers=auth_headers(alice))
        assert response.status_code == 200
        ids = [p["id"] for p in response.json()["data"]]
        assert ids == [second["id"], first["id"]]

    async def test_feed_and_detail_redact_identically(self, client, alice, bob, carol):
        post = await publish(client, alice)
        await client.post(f"/api/posts/{post['id']}/participate", headers=auth_headers(bob))

        for viewer in (bob, carol):
            feed = (await client.get("/api/posts", headers=auth_headers(viewer))).json()["data"]
            detail = (await client.get(f"/api/posts/{post['id']}", headers=auth_headers(viewer))).json()["data"]
            assert feed[0] == detail

        detail = (await client.get(f"/api/posts/{post['id']}", headers=auth_headers(carol))).json()["data"]
        assert detail["author"]["realName"] is None
        assert detail["participantsCount"] == 1

    async def test_author_sees_own_real_name(self, client, alice):
        post = await publish(client, alice)
        response = await client.get(f"/api/posts/{post['id']}", headers=auth_headers(alice))
        assert response.json()["data"]["author"]["realName"] == "张爱丽"

    async def test_admin_does_not_see_real_name_without_joining(self, client, alice, admin):
        post = await publish(client, alice)
        response = await client.get(f"/api/posts/{post['id']}", headers=auth_headers(admin))
        assert response.json()["data"]["author"]["realName"] is None


class TestAccessControl:
    """认证与资料完善要求"""

    async def test_missing_token_is_401(self, client):
        response = await client.get("/api/posts")
        assert response.status_code == 401
        assert response.json()["error_code"] == "TOKEN_REQUIRED"

    async def test_invalid_token_is_403(self, client):
        response = await client.get("/api/posts", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 403
        assert response.json()["error_code"] == "TOKEN_INVALID"

    async def test_incomplete_profile_is_403(self, client, session_factory):
        newcomer = await create_user(
            session_factory, "new@shanghaitech.edu.cn", profile_completed=False
        )
        response = await client.post(
            "/api/posts", json={"content": "hi"}, headers=auth_headers(newcomer)
        )
        assert response.status_code == 403
        body = response.json()
        assert body["error_code"] == "PROFILE_INCOMPLETE"
        assert body["details"] == {"profileCompleted": False}


class TestParticipation:
    """参与与取消参与"""

    async def test_scenario_join_cancel_and_premature_kick(self, client, alice, bob):
        post = await publish(client, alice, content="study session", targetPeople=3)
        post_id = post["id"]

        feed = (await client.get("/api/posts", headers=auth_headers(bob))).json()["data"]
        seen = next(p for p in feed if p["id"] == post_id)
        assert seen["author"]["nickname"] == "Alice"
        assert seen["author"]["realName"] is None
        assert seen["hasParticipated"] is False

        joined = await client.post(f"/api/posts/{post_id}/participate", headers=auth_headers(bob))
        assert joined.status_code == 200
        joined_view = joined.json()["data"]
        assert joined_view["author"]["realName"] == "张爱丽"
        assert joined_view["hasParticipated"] is True
        assert joined_view["participantsCount"] == 1

        cancelled = await client.delete(f"/api/posts/{post_id}/participate", headers=auth_headers(bob))
        assert cancelled.status_code == 200
        cancelled_view = cancelled.json()["data"]
        assert cancelled_view["author"]["realName"] is None
        assert cancelled_view["hasParticipated"] is False
        assert cancelled_view["participantsCount"] == 0

        # 取消后与从未参与时看到的完全一致
        detail = (await client.get(f"/api/posts/{post_id}", headers=auth_headers(bob))).json()["data"]
        assert detail == seen

        kicked = await client.delete(
            f"/api/posts/{post_id}/participants/{bob.id}", headers=auth_headers(alice)
        )
        assert kicked.status_code == 404
        assert kicked.json()["error_code"] == "PARTICIPANT_NOT_FOUND"

    async def test_duplicate_participation_is_a_distinct_error(self, client, alice, bob):
        post = await publish(client, alice)
        url = f"/api/posts/{post['id']}/participate"

        assert (await client.post(url, headers=auth_headers(bob))).status_code == 200
        second = await client.post(url, headers=auth_headers(bob))
        assert second.status_code == 400
        assert second.json()["error_code"] == "ALREADY_PARTICIPATED"

        detail = (await client.get(f"/api/posts/{post['id']}", headers=auth_headers(bob))).json()["data"]
        assert detail["participantsCount"] == 1

    async def test_participate_missing_post_is_404(self, client, bob):
        response = await client.post("/api/posts/999/participate", headers=auth_headers(bob))
        assert response.status_code == 404

    async def test_author_cannot_join_own_post(self, client, alice):
        post = await publish(client, alice)
        response = await client.post(f"/api/posts/{post['id']}/participate", headers=auth_headers(alice))
        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    async def test_cancel_without_participation_is_400(self, client, alice, bob):
        post = await publish(client, alice)
        response = await client.delete(f"/api/posts/{post['id']}/participate", headers=auth_headers(bob))
        assert response.status_code == 400
        assert response.json()["error_code"] == "NOT_PARTICIPATING"

    async def test_cancel_on_missing_post_is_404(self, client, bob):
        response = await client.delete("/api/posts/999/participate", headers=auth_headers(bob))
        assert response.status_code == 404

    async def test_real_name_follows_participation_for_every_viewer(self, client, alice, bob, carol, admin):
        post = await publish(client, alice)
        await client.post(f"/api/posts/{post['id']}/participate", headers=auth_headers(bob))
        await client.post(f"/api/posts/{post['id']}/participate", headers=auth_headers(admin))

        expected = {bob.id: "张爱丽", admin.id: "张爱丽", carol.id: None}
        for viewer in (bob, carol, admin):
            feed = (await client.get("/api/posts", headers=auth_headers(viewer))).json()["data"]
            assert feed[0]["author"]["realName"] == expected[viewer.id]
            assert feed[0]["hasParticipated"] is (expected[viewer.id] is not None)


class TestParticipants:
    """参与者名单"""

    async def test_non_participant_cannot_list(self, client, alice, bob, carol):
        post = await publish(client, alice)
        await client.post(f"/api/posts/{post['id']}/participate", headers=auth_headers(bob))

        response = await client.get(f"/api/posts/{post['id']}/participants", headers=auth_headers(carol))
        assert response.status_code == 403
        assert response.json()["error_code"] == "PARTICIPATION_REQUIRED"

    async def test_participants_in_join_order(self, client, alice, bob, carol):
        post = await publish(client, alice)
        await client.post(f"/api/posts/{post['id']}/participate", headers=auth_headers(bob))
        await client.post(f"/api/posts/{post['id']}/participate", headers=auth_headers(carol))

        for viewer in (bob, alice):
            response = await client.get(f"/api/posts/{post['id']}/participants", headers=auth_headers(viewer))
            assert response.status_code == 200
            participants = response.json()["data"]
            assert [p["id"] for p in participants] == [bob.id, carol.id]
            assert "realName" not in participants[0]
            assert participants[0]["nickname"] == "Bob"

    async def test_list_for_missing_post_is_404(self, client, bob):
        response = await client.get("/api/posts/999/participants", headers=auth_headers(bob))
        assert response.status_code == 404


class TestKick:
    """移除参与者"""

    async def test_author_kicks_participant(self, client, alice, bob):
        post = await publish(client, alice)
        await client.post(f"/api/posts/{post['id']}/participate", headers=auth_headers(bob))

        response = await client.delete(
            f"/api/posts/{post['id']}/participants/{bob.id}", headers=auth_headers(alice)
        )
        assert response.status_code == 200

        detail = (await client.get(f"/api/posts/{post['id']}", headers=auth_headers(bob))).json()["data"]
        assert detail["hasParticipated"] is False
        assert detail["author"]["realName"] is None
        assert detail["participantsCount"] == 0

    async def test_admin_kick_keeps_own_participation(self, client, alice, bob, admin):
        post = await publish(client, alice)
        await client.post(f"/api/posts/{post['id']}/participate", headers=auth_headers(bob))
        await client.post(f"/api/posts/{post['id']}/participate", headers=auth_headers(admin))

        response = await client.delete(
            f"/api/posts/{post['id']}/participants/{bob.id}", headers=auth_headers(admin)
        )
        assert response.status_code == 200

        detail = (await client.get(f"/api/posts/{post['id']}", headers=auth_headers(admin))).json()["data"]
        assert detail["hasParticipated"] is True
        assert detail["participantsCount"] == 1

    async def test_non_manager_kick_is_403(self, client, alice, bob, carol):
        post = await publish(client, alice)
        await client.post(f"/api/posts/{post['id']}/participate", headers=auth_headers(bob))

        response = await client.delete(
            f"/api/posts/{post['id']}/participants/{bob.id}", headers=auth_headers(carol)
        )
        assert response.status_code == 403

    async def test_manager_cannot_kick_self(self, client, alice, admin):
        post = await publish(client, alice)
        await client.post(f"/api/posts/{post['id']}/participate", headers=auth_headers(admin))

        response = await client.delete(
            f"/api/posts/{post['id']}/participants/{admin.id}", headers=auth_headers(admin)
        )
        assert response.status_code == 400
        assert response.json()["error_code"] == "CANNOT_KICK_SELF"

    async def test_kick_on_missing_post_is_404(self, client, alice, bob):
        response = await client.delete(f"/api/posts/999/participants/{bob.id}", headers=auth_headers(alice))
        assert response.status_code == 404


class TestUpdate:
    """编辑帖子"""

    async def test_scenario_non_owner_forbidden_admin_partial_update(self, client, alice, carol, admin):
        original = await publish(
            client, alice,
            content="study session",
            targetPeople=3,
            duration=90,
            location="教学楼",
            tags=["学习"],
        )
        url = f"/api/posts/{original['id']}"

        for payload in ({"location": "library"}, {"targetPeople": -5}, {}):
            response = await client.put(url, json=payload, headers=auth_headers(carol))
            assert response.status_code == 403

        response = await client.put(url, json={"location": "library"}, headers=auth_headers(admin))
        assert response.status_code == 200
        updated = response.json()["data"]
        assert updated["location"] == "library"
        assert updated["authorId"] == alice.id
        for field in ("content", "targetPeople", "duration", "tags", "eventTime", "createdAt"):
            assert updated[field] == original[field]

    @pytest.mark.parametrize("body", [
        {"json": [1, 2]},
        {"json": "x"},
        {},
    ])
    async def test_non_owner_gets_403_for_non_object_body(self, client, alice, carol, body):
        post = await publish(client, alice)
        response = await client.put(f"/api/posts/{post['id']}", headers=auth_headers(carol), **body)
        assert response.status_code == 403

    @pytest.mark.parametrize("body", [
        {"json": [1, 2]},
        {"json": "x"},
        {},
    ])
    async def test_owner_non_object_body_is_400(self, client, alice, body):
        post = await publish(client, alice)
        response = await client.put(f"/api/posts/{post['id']}", headers=auth_headers(alice), **body)
        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    async def test_owner_clears_field_with_null(self, client, alice):
        post = await publish(client, alice, targetPeople=3, location="食堂")
        response = await client.put(
            f"/api/posts/{post['id']}", json={"targetPeople": None}, headers=auth_headers(alice)
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["targetPeople"] is None
        assert data["location"] == "食堂"

    async def test_update_with_no_fields_is_400(self, client, alice):
        post = await publish(client, alice)
        response = await client.put(f"/api/posts/{post['id']}", json={}, headers=auth_headers(alice))
        assert response.status_code == 400
        assert response.json()["error_code"] == "NO_FIELDS_TO_UPDATE"

    @pytest.mark.parametrize("payload", [
        {"content": ""},
        {"content": None},
        {"duration": 0},
        {"tags": "学习"},
    ])
    async def test_owner_invalid_payload_is_400(self, client, alice, payload):
        post = await publish(client, alice)
        response = await client.put(f"/api/posts/{post['id']}", json=payload, headers=auth_headers(alice))
        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    async def test_update_missing_post_is_404(self, client, alice):
        response = await client.put("/api/posts/999", json={"location": "x"}, headers=auth_headers(alice))
        assert response.status_code == 404


class TestDelete:
    """删除帖子"""

    async def test_owner_deletes_post_and_participations(self, client, alice, bob):
        post = await publish(client, alice)
        await client.post(f"/api/posts/{post['id']}/participate", headers=auth_headers(bob))

        response = await client.delete(f"/api/posts/{post['id']}", headers=auth_headers(alice))
        assert response.status_code == 200

        again = await client.delete(f"/api/posts/{post['id']}", headers=auth_headers(alice))
        assert again.status_code == 404

        detail = await client.get(f"/api/posts/{post['id']}", headers=auth_headers(bob))
        assert detail.status_code == 404

    async def test_non_owner_delete_is_403(self, client, alice, carol):
        post = await publish(client, alice)
        response = await client.delete(f"/api/posts/{post['id']}", headers=auth_headers(carol))
        assert response.status_code == 403

    async def test_admin_can_delete(self, client, alice, admin):
        post = await publish(client, alice)
        response = await client.delete(f"/api/posts/{post['id']}", headers=auth_headers(admin))
        assert response.status_code == 200
