"""Tests for post and comment endpoints."""

from fastapi import status

from linkboard.models import KarmaEvent, Notification, Post


def test_create_post_rewards_karma_and_notifies(
    client, test_user, auth_token, other_user, subreddit, subscribe, connect, db_session
) -> None:
    subscribe(subreddit, other_user)
    handle = connect(other_user)

    response = client.post(
        "/api/v1/posts/",
        json={"title": "Release notes", "content": "3.13 is out", "subreddit_id": subreddit.id},
        headers=auth_token,
    )

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["author_id"] == test_user.id
    assert data["media_errors"] == []

    event = db_session.query(KarmaEvent).filter(KarmaEvent.user_id == test_user.id).one()
    assert event.reason == "post_created"
    assert event.source_id == data["id"]
    db_session.refresh(test_user)
    assert test_user.karma == 1

    notifications = db_session.query(Notification).all()
    assert [(n.user_id, n.type) for n in notifications] == [(other_user.id, "post")]
    assert handle.events() == ["new_notification"]


def test_create_post_requires_membership(client, other_auth_token, subreddit) -> None:
    response = client.post(
        "/api/v1/posts/",
        json={"title": "Hi", "subreddit_id": subreddit.id},
        headers=other_auth_token,
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_create_post_in_missing_subreddit(client, auth_token) -> None:
    response = client.post(
        "/api/v1/posts/", json={"title": "Hi", "subreddit_id": 999}, headers=auth_token
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_media_items_validated_individually(client, auth_token, subreddit) -> None:
    response = client.post(
        "/api/v1/posts/",
        json={
            "title": "Gallery",
            "subreddit_id": subreddit.id,
            "media": [
                {"type": "image", "url": "https://media.example.com/a.png"},
                {"type": "audio", "url": "https://media.example.com/b.mp3"},
                {"type": "video", "url": "ftp://media.example.com/c.mp4"},
                {"type": "video", "url": "https://media.example.com/d.mp4"},
            ],
        },
        headers=auth_token,
    )

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert [m["media_type"] for m in data["media"]] == ["image", "video"]
    assert [e["index"] for e in data["media_errors"]] == [1, 2]


def test_get_and_list_posts(client, auth_token, test_post, subreddit) -> None:
    response = client.get(f"/api/v1/posts/{test_post.id}", headers=auth_token)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["title"] == test_post.title

    listing = client.get("/api/v1/posts/", params={"subreddit_id": subreddit.id}, headers=auth_token)
    assert [p["id"] for p in listing.json()] == [test_post.id]


def test_only_author_updates_post(client, auth_token, other_auth_token, test_post) -> None:
    url = f"/api/v1/posts/{test_post.id}"
    assert client.put(url, json={"title": "Edited"}, headers=other_auth_token).status_code == 403

    response = client.put(url, json={"title": "Edited"}, headers=auth_token)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["title"] == "Edited"
    assert response.json()["updated_at"] is not None
def test_moderator_with_manage_posts_deletes(
    client, make_user, headers_for, test_post, subreddit, add_moderator, db_session
) -> None:
    moderator = make_user("mod")
    add_moderator(subreddit, moderator, ["MANAGE_POSTS"])

    response = client.request(
        "DELETE",
        f"/api/v1/posts/{test_post.id}",
        json={"reason": "Off topic"},
        headers=headers_for(moderator),
    )

    assert response.status_code == status.HTTP_200_OK
    db_session.refresh(test_post)
    assert test_post.is_deleted is True
    assert test_post.delete_reason == "Off topic"
    assert client.get(f"/api/v1/posts/{test_post.id}", headers=headers_for(moderator)).status_code == 404


def test_moderator_without_manage_posts_cannot_delete(
    client, make_user, headers_for, test_post, subreddit, add_moderator
) -> None:
    moderator = make_user("mod")
    add_moderator(subreddit, moderator, ["MANAGE_COMMENTS"])

    response = client.delete(f"/api/v1/posts/{test_post.id}", headers=headers_for(moderator))
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_author_deletes_own_post(client, auth_token, test_post, db_session) -> None:
    response = client.delete(f"/api/v1/posts/{test_post.id}", headers=auth_token)

    assert response.json() == {"message": "Post deleted"}
    assert db_session.get(Post, test_post.id).is_deleted is True


def test_comment_notifies_post_author(
    client, test_user, other_user, other_auth_token, test_post, connect, db_session
) -> None:
    handle = connect(test_user)

    response = client.post(
        f"/api/v1/posts/{test_post.id}/comments",
        json={"content": "Great read"},
        headers=other_auth_token,
    )

    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["author_id"] == other_user.id
    notification = db_session.query(Notification).filter(Notification.user_id == test_user.id).one()
    assert notification.type == "comment"
    assert "Great read" in notification.content
    assert handle.events() == ["new_notification"]
    assert handle.frames[0]["data"]["id"] == notification.id


def test_reply_must_share_post(client, auth_token, test_comment, subreddit, db_session, test_user) -> None:
    other_post = Post(title="Other", author_id=test_user.id, subreddit_id=subreddit.id)
    db_session.add(other_post)
    db_session.flush()

    response = client.post(
        f"/api/v1/posts/{other_post.id}/comments",
        json={"content": "reply", "parent_id": test_comment.id},
        headers=auth_token,
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_list_comments_in_order(client, auth_token, other_auth_token, test_post, test_comment) -> None:
    client.post(
        f"/api/v1/posts/{test_post.id}/comments",
        json={"content": "Second", "parent_id": test_comment.id},
        headers=other_auth_token,
    )

    response = client.get(f"/api/v1/posts/{test_post.id}/comments", headers=auth_token)
    assert [c["content"] for c in response.json()] == ["Nice post", "Second"]
    assert response.json()[1]["parent_id"] == test_comment.id


def test_comment_moderation(
    client, make_user, headers_for, other_auth_token, test_comment, subreddit, add_moderator
) -> None:
    url = f"/api/v1/comments/{test_comment.id}"
    assert client.put(url, json={"content": "hijack"}, headers=other_auth_token).status_code == 403

    moderator = make_user("mod")
    add_moderator(subreddit, moderator, ["MANAGE_COMMENTS"])
    response = client.put(url, json={"content": "[edited by moderator]"}, headers=headers_for(moderator))
    assert response.json()["content"] == "[edited by moderator]"

    assert client.delete(url, headers=headers_for(moderator)).status_code == 200
    assert client.get(url, headers=headers_for(moderator)).status_code == 404
