from bson import ObjectId

from conftest import auth


def test_public_listing_and_authenticated_create(client, customer_token):
    assert client.get("/post").json() == []

    res = client.post("/post/upload", json={"user": "john", "content": "hello", "image": None})
    assert res.status_code == 401

    res = client.post(
        "/post/upload", json={"user": "john", "content": "hello", "image": None}, headers=auth(customer_token)
    )
    assert res.status_code == 201
    post_id = res.json()["id"]

    posts = client.get("/post").json()
    assert [p["id"] for p in posts] == [post_id]
    assert client.get(f"/post/{post_id}").json()["content"] == "hello"


def test_update_and_delete(client, customer_token):
    post_id = client.post(
        "/post/upload", json={"user": "john", "content": "v1"}, headers=auth(customer_token)
    ).json()["id"]

    res = client.patch(f"/post/{post_id}", json={"user": "john", "content": "v2"}, headers=auth(customer_token))
    assert res.status_code == 200
    assert client.get(f"/post/{post_id}").json()["content"] == "v2"

    assert client.delete(f"/post/{post_id}").status_code == 401
    assert client.delete(f"/post/{post_id}", headers=auth(customer_token)).status_code == 200
    assert client.get(f"/post/{post_id}").status_code == 404


def test_missing_posts(client, customer_token):
    missing = str(ObjectId())
    assert client.get(f"/post/{missing}").status_code == 404
    assert client.get("/post/not-an-id").status_code == 404
    assert client.patch(f"/post/{missing}", json={"content": "x"}, headers=auth(customer_token)).status_code == 404
    assert client.delete(f"/post/{missing}", headers=auth(customer_token)).status_code == 404
