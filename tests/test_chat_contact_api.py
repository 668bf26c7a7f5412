def send(client, message, sender="c1", recipient="admin", **extra):
    body = {"senderId": sender, "recipientId": recipient, "message": message}
    body.update(extra)
    return client.post("/api/chat/send", json=body)


# ========== CHAT ==========
def test_send_and_read_conversation(client):
    resp = send(client, "Is this in stock?")
    assert resp.status_code == 201
    assert resp.json()["conversationId"] == "c1-admin"

    send(client, "Yes it is", sender="admin", recipient="c1", conversationId="c1-admin")

    resp = client.get("/api/chat/conversation/c1-admin")
    assert resp.status_code == 200
    body = resp.json()
    assert body["messageCount"] == 2
    assert [m["message"] for m in body["messages"]] == ["Is this in stock?", "Yes it is"]
    assert body["messages"][0]["senderName"] == "Customer"
    assert body["messages"][0]["isRead"] is False


def test_sender_required(client):
    resp = client.post("/api/chat/send", json={"recipientId": "admin", "message": "hi"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Missing required fields"


def test_token_subject_used_as_sender(client, admin_login):
    headers = {"Authorization": f"Bearer {admin_login['token']}"}
    resp = client.post("/api/chat/send", json={"recipientId": "admin", "message": "hi"}, headers=headers)
    assert resp.status_code == 201
    assert resp.json()["conversationId"] == f"{admin_login['admin']['id']}-admin"


def test_admin_inbox_counts_unread(client, admin_headers):
    send(client, "First question")
    send(client, "Second question")
    send(client, "Answer", sender="admin", recipient="c1", conversationId="c1-admin")
    send(client, "Hello", sender="c2", senderName="Bea")

    assert client.get("/api/chat/admin/conversations").status_code == 401

    resp = client.get("/api/chat/admin/conversations", headers=admin_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["count"] == 2
    latest, older = body["conversations"]
    assert latest["conversationId"] == "c2-admin"
    assert latest["customerName"] == "Bea"
    assert latest["unreadCount"] == 1
    assert older["customerId"] == "c1"
    assert older["lastMessage"] == "Answer"
    assert older["unreadCount"] == 2


def test_mark_read_and_delete(client, admin_headers):
    message_id = send(client, "Ping").json()["messageId"]

    resp = client.put(f"/api/chat/{message_id}/read", headers=admin_headers)
    assert resp.status_code == 200
    message = client.get("/api/chat/conversation/c1-admin").json()["messages"][0]
    assert message["isRead"] is True
    assert message["readAt"] is not None

    assert client.delete(f"/api/chat/{message_id}", headers=admin_headers).status_code == 200
    assert client.get("/api/chat/conversation/c1-admin").json()["messageCount"] == 0

    assert client.put(f"/api/chat/{message_id}/read", headers=admin_headers).status_code == 404
    assert client.delete(f"/api/chat/{message_id}", headers=admin_headers).status_code == 404


# ========== CONTACT ==========
CONTACT = {"name": "Jane", "email": "jane@shop.com", "message": "Do you ship to Lahore?"}


def test_contact_submission(client, notifier, admin_headers):
    resp = client.post("/api/contact", json=CONTACT)
    assert resp.status_code == 201
    contact_id = resp.json()["contactId"]
    assert notifier.kinds() == ["contact_receipt", "contact_alert"]

    contacts = client.get("/api/contact/admin/all", headers=admin_headers).json()["contacts"]
    assert len(contacts) == 1
    assert contacts[0]["id"] == contact_id
    assert contacts[0]["subject"] == "General Inquiry"
    assert contacts[0]["status"] == "new"


def test_contact_survives_mail_failure(client, failing_notifier):
    resp = client.post("/api/contact", json=CONTACT)
    assert resp.status_code == 201
    assert resp.json()["success"] is True


def test_contact_validation(client, notifier):
    assert client.post("/api/contact", json=dict(CONTACT, message="short")).status_code == 400
    assert client.post("/api/contact", json=dict(CONTACT, email="nope")).status_code == 400
    assert client.post("/api/contact", json=dict(CONTACT, name="J")).status_code == 400
    assert notifier.sent == []


def test_contact_text_is_sanitized(client, notifier, admin_headers):
    client.post("/api/contact", json=dict(CONTACT, name="<i>Jane</i> & Co"))
    contact = client.get("/api/contact/admin/all", headers=admin_headers).json()["contacts"][0]
    assert contact["name"] == "iJane/i &amp; Co"


def test_contact_status_update(client, notifier, admin_headers):
    contact_id = client.post("/api/contact", json=CONTACT).json()["contactId"]

    assert client.put(f"/api/contact/{contact_id}/status", json={"status": "replied"}).status_code == 401
    resp = client.put(f"/api/contact/{contact_id}/status", json={"status": "replied"}, headers=admin_headers)
    assert resp.status_code == 200
    contact = client.get("/api/contact/admin/all", headers=admin_headers).json()["contacts"][0]
    assert contact["status"] == "replied"

    resp = client.put("/api/contact/999/status", json={"status": "replied"}, headers=admin_headers)
    assert resp.status_code == 404
