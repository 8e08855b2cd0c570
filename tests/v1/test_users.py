"""Tests for profile, follow and account-ban endpoints."""

from fastapi import status

from linkboard.models import Notification, Vote, VoteTarget


def test_profile_shows_both_karmas(
    client, test_user, other_user, other_auth_token, test_post, test_comment, db_session
) -> None:
    test_user.karma = 7
    db_session.add(Vote(user_id=other_user.id, target_kind=VoteTarget.POST.value, target_id=test_post.id, value=1))
    db_session.add(Vote(
        user_id=other_user.id, target_kind=VoteTarget.COMMENT.value, target_id=test_comment.id, value=-1
    ))
    db_session.flush()

    response = client.get(f"/api/v1/users/{test_user.id}", headers=other_auth_token)

    assert response.status_code == status.HTTP_200_OK
    profile = response.json()
    assert profile["karma"] == 7
    assert profile["display_karma"] == 0
    assert profile["post_count"] == 1
    assert profile["comment_count"] == 1
    assert profile["is_following"] is False


def test_update_my_profile(client, auth_token) -> None:
    response = client.patch(
        "/api/v1/users/me",
        json={"bio": "Pythonista", "avatar_url": "https://cdn.example.com/a.png"},
        headers=auth_token,
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["bio"] == "Pythonista"


def test_avatar_url_must_be_http(client, auth_token) -> None:
    response = client.patch("/api/v1/users/me", json={"avatar_url": "javascript:alert(1)"}, headers=auth_token)
    assert response.status_code == 422


def test_follow_notifies_and_lists(
    client, test_user, other_user, other_auth_token, auth_token, connect, db_session
) -> None:
    handle = connect(test_user)

    response = client.post(f"/api/v1/users/{test_user.id}/follow", headers=other_auth_token)

    assert response.status_code == status.HTTP_201_CREATED
    notification = db_session.query(Notification).one()
    assert (notification.user_id, notification.type) == (test_user.id, "follow")
    assert handle.events() == ["new_notification"]

    followers = client.get(f"/api/v1/users/{test_user.id}/followers", headers=auth_token).json()
    assert [u["username"] for u in followers] == ["bob"]
    following = client.get(f"/api/v1/users/{other_user.id}/following", headers=auth_token).json()
    assert [u["username"] for u in following] == ["alice"]

    profile = client.get(f"/api/v1/users/{test_user.id}", headers=other_auth_token).json()
    assert profile["is_following"] is True
    assert profile["follower_count"] == 1


def test_follow_rules(client, test_user, other_user, auth_token, other_auth_token) -> None:
    assert client.post(f"/api/v1/users/{test_user.id}/follow", headers=auth_token).status_code == 400

    url = f"/api/v1/users/{test_user.id}/follow"
    client.post(url, headers=other_auth_token)
    assert client.post(url, headers=other_auth_token).status_code == 400

    assert client.delete(url, headers=other_auth_token).status_code == 200
    assert client.delete(url, headers=other_auth_token).status_code == 404


def test_user_posts_and_comments(client, test_user, other_auth_token, test_post, test_comment) -> None:
    posts = client.get(f"/api/v1/users/{test_user.id}/posts", headers=other_auth_token).json()
    comments = client.get(f"/api/v1/users/{test_user.id}/comments", headers=other_auth_token).json()

    assert [p["id"] for p in posts] == [test_post.id]
    assert [c["id"] for c in comments] == [test_comment.id]


def test_missing_user(client, auth_token) -> None:
    assert client.get("/api/v1/users/9999", headers=auth_token).status_code == 404


def test_admin_bans_account(client, other_user, admin_auth_token, headers_for) -> None:
    response = client.post(
        f"/api/v1/users/{other_user.id}/ban",
        json={"reason": "Abuse", "duration_days": 3},
        headers=admin_auth_token,
    )

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["is_banned"] is True
    assert body["ban_reason"] == "Abuse"
    assert body["ban_expires_at"] is not None

    blocked = client.get("/api/v1/auth/me", headers=headers_for(other_user))
    assert blocked.status_code == status.HTTP_403_FORBIDDEN

    lifted = client.delete(f"/api/v1/users/{other_user.id}/ban", headers=admin_auth_token)
    assert lifted.json()["is_banned"] is False
    assert client.get("/api/v1/auth/me", headers=headers_for(other_user)).status_code == 200


def test_ban_requires_admin(client, test_user, other_auth_token) -> None:
    response = client.post(f"/api/v1/users/{test_user.id}/ban", json={"reason": "no"}, headers=other_auth_token)
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_ban_duration_must_be_positive(client, other_user, admin_auth_token) -> None:
    response = client.post(
        f"/api/v1/users/{other_user.id}/ban", json={"duration_days": 0}, headers=admin_auth_token
    )
    assert response.status_code == 422
