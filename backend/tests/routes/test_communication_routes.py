"""
Communication Routes Integration Tests
======================================

Covers:
- Direct messages: inbox, unread count, read, reply threads, archive
- Notifications: listing, read state, deletion, ownership
- Announcements: targeting, scheduling, critical fan-out, edit rights, read receipts
"""

import pytest

from staffhub.core.enums import NotificationType
from staffhub.models.notification import Notification
from staffhub.services.notification_service import create_notification


pytestmark = pytest.mark.integration


@pytest.fixture
def message(client, staff_headers, department_head):
    response = client.post(
        "/messages",
        headers=staff_headers,
        json={"recipient_id": str(department_head.id), "subject": "Shift swap", "body": "Can I swap Friday?"},
    )
    assert response.status_code == 201
    return response.json()["messages"][0]


class TestMessages:
    """Tests for /messages."""

    def test_inbox_and_unread(self, client, db_session, message, head_headers, department_head):
        """Test a direct message lands unread in the recipient's inbox with a notification."""
        # Act
        inbox = client.get("/messages/inbox", headers=head_headers).json()
        count = client.get("/messages/unread-count", headers=head_headers).json()

        # Assert
        assert [m["id"] for m in inbox["messages"]] == [message["id"]]
        assert count == {"count": 1}
        notification = db_session.query(Notification).filter(Notification.user_id == department_head.id).one()
        assert notification.type == NotificationType.MESSAGE

    def test_mark_read(self, client, message, head_headers):
        """Test the recipient can mark a message read."""
        # Act
        response = client.post(f"/messages/{message['id']}/read", headers=head_headers)
        count = client.get("/messages/unread-count", headers=head_headers).json()

        # Assert
        assert response.json()["status"] == "read"
        assert count == {"count": 0}

    def test_sender_cannot_mark_read(self, client, message, staff_headers):
        """Test only the recipient can mark a message read."""
        # Act
        response = client.post(f"/messages/{message['id']}/read", headers=staff_headers)

        # Assert
        assert response.status_code == 403

    def test_reply_thread(self, client, message, head_headers, staff_headers, staff_user):
        """Test replies go back to the sender and join the thread."""
        # Act
        reply = client.post(f"/messages/{message['id']}/reply", headers=head_headers, json={"body": "Yes, fine."})
        thread = client.get(f"/messages/{message['id']}/thread", headers=staff_headers).json()

        # Assert
        assert reply.status_code == 201
        assert reply.json()["recipient_id"] == str(staff_user.id)
        assert reply.json()["subject"] == "Re: Shift swap"
        assert [m["body"] for m in thread["messages"]] == ["Can I swap Friday?", "Yes, fine."]

    def test_outsider_denied(self, client, message, manager_headers):
        """Test profiles outside the conversation cannot read it."""
        # Act
        response = client.get(f"/messages/{message['id']}/thread", headers=manager_headers)

        # Assert
        assert response.status_code == 403

    def test_message_to_self(self, client, staff_headers, staff_user):
        """Test profiles cannot message themselves."""
        # Act
        response = client.post("/messages", headers=staff_headers, json={"recipient_id": str(staff_user.id), "body": "Note"})

        # Assert
        assert response.status_code == 422

    def test_archive_hides_from_inbox(self, client, message, head_headers):
        """Test archived messages only appear when asked for."""
        # Act
        client.post(f"/messages/{message['id']}/archive", headers=head_headers)
        inbox = client.get("/messages/inbox", headers=head_headers).json()
        everything = client.get("/messages/inbox?include_archived=true", headers=head_headers).json()

        # Assert
        assert inbox["total"] == 0
        assert everything["messages"][0]["status"] == "archived"


class TestNotifications:
    """Tests for /notifications."""

    @pytest.fixture
    def notifications(self, db_session, staff_user):
        created = [
            create_notification(db_session, staff_user.id, NotificationType.SYSTEM, f"Notice {i}", "Body")
            for i in range(3)
        ]
        db_session.commit()
        return created

    def test_list_and_count(self, client, notifications, staff_headers):
        """Test listing returns the user's notifications with paging data."""
        # Act
        listing = client.get("/notifications?page_size=2", headers=staff_headers).json()
        count = client.get("/notifications/unread-count", headers=staff_headers).json()

        # Assert
        assert listing["total"] == 3
        assert len(listing["notifications"]) == 2
        assert count == {"count": 3}

    def test_mark_read_and_unread_filter(self, client, notifications, staff_headers):
        """Test a read notification drops out of the unread list."""
        # Act
        read = client.post(f"/notifications/{notifications[0].id}/read", headers=staff_headers).json()
        unread = client.get("/notifications?unread_only=true", headers=staff_headers).json()

        # Assert
        assert read["is_read"] is True
        assert unread["total"] == 2

    def test_read_all(self, client, notifications, staff_headers):
        """Test marking everything read reports the number updated."""
        # Act
        response = client.post("/notifications/read-all", headers=staff_headers)
        count = client.get("/notifications/unread-count", headers=staff_headers).json()

        # Assert
        assert response.json() == {"updated": 3}
        assert count == {"count": 0}

    def test_delete(self, client, notifications, staff_headers):
        """Test users can delete their notifications."""
        # Act
        response = client.delete(f"/notifications/{notifications[0].id}", headers=staff_headers)
        listing = client.get("/notifications", headers=staff_headers).json()

        # Assert
        assert response.status_code == 204
        assert listing["total"] == 2

    def test_other_users_notification(self, client, notifications, head_headers):
        """Test notifications of other users are not found."""
        # Act
        response = client.post(f"/notifications/{notifications[0].id}/read", headers=head_headers)

        # Assert
        assert response.status_code == 404


class TestAnnouncements:
    """Tests for /announcements."""

    def test_critical_fans_out(self, client, db_session, manager_headers, staff_user, department_head):
        """Test critical announcements notify everyone at the property but the author."""
        # Act
        response = client.post(
            "/announcements",
            headers=manager_headers,
            json={"title": "Water outage", "content": "No hot water until 14:00.", "priority": "critical"},
        )

        # Assert
        assert response.status_code == 201
        notified = {n.user_id for n in db_session.query(Notification).filter(
            Notification.type == NotificationType.ANNOUNCEMENT
        )}
        assert notified == {staff_user.id, department_head.id}

    def test_normal_priority_does_not_notify(self, client, db_session, manager_headers, staff_user):
        """Test normal announcements are not pushed as notifications."""
        # Act
        client.post("/announcements", headers=manager_headers, json={"title": "Menu update", "content": "New dishes."})

        # Assert
        assert db_session.query(Notification).filter(Notification.type == NotificationType.ANNOUNCEMENT).count() == 0

    def test_role_targeting(self, client, manager_headers, staff_headers, head_headers):
        """Test role-targeted announcements only reach those roles."""
        # Arrange
        client.post(
            "/announcements",
            headers=manager_headers,
            json={"title": "Heads meeting", "content": "Monday 09:00", "target_roles": ["department_head"]},
        )

        # Act
        staff_view = client.get("/announcements", headers=staff_headers).json()
        head_view = client.get("/announcements", headers=head_headers).json()

        # Assert
        assert staff_view["total"] == 0
        assert [a["title"] for a in head_view["announcements"]] == ["Heads meeting"]

    def test_scheduled_hidden_until_due(self, client, manager_headers, staff_headers):
        """Test announcements scheduled for later are not listed yet."""
        # Arrange
        client.post(
            "/announcements",
            headers=manager_headers,
            json={"title": "New year party", "content": "Details soon", "scheduled_at": "2099-01-01T00:00:00Z"},
        )

        # Act
        response = client.get("/announcements", headers=staff_headers).json()

        # Assert
        assert response["total"] == 0

    def test_expiry_must_follow_schedule(self, client, manager_headers):
        """Test expires_at before scheduled_at is rejected."""
        # Act
        response = client.post(
            "/announcements",
            headers=manager_headers,
            json={
                "title": "Backwards",
                "content": "Oops",
                "scheduled_at": "2099-01-02T00:00:00Z",
                "expires_at": "2099-01-01T00:00:00Z",
            },
        )

        # Assert
        assert response.status_code == 422

    def test_staff_cannot_announce(self, client, staff_headers):
        """Test announcing needs a department head or above."""
        # Act
        response = client.post("/announcements", headers=staff_headers, json={"title": "Hi", "content": "All"})

        # Assert
        assert response.status_code == 403

    def test_head_cannot_edit_managers_announcement(self, client, manager_headers, head_headers):
        """Test heads can only change announcements they wrote."""
        # Arrange
        created = client.post(
            "/announcements", headers=manager_headers, json={"title": "Dress code", "content": "Name badges on"}
        ).json()

        # Act
        response = client.patch(f"/announcements/{created['id']}", headers=head_headers, json={"is_pinned": True})

        # Assert
        assert response.status_code == 403

    def test_property_role_cannot_edit_global(self, client, admin_headers, manager_headers):
        """Test only regional roles change announcements for every property."""
        # Arrange
        created = client.post(
            "/announcements", headers=admin_headers, json={"title": "Group policy", "content": "Updated"}
        ).json()

        # Act
        response = client.delete(f"/announcements/{created['id']}", headers=manager_headers)

        # Assert
        assert created["property_id"] is None
        assert response.status_code == 403

    def test_read_receipt(self, client, manager_headers, staff_headers):
        """Test marking an announcement read shows in the listing."""
        # Arrange
        created = client.post(
            "/announcements", headers=manager_headers, json={"title": "Parking", "content": "Level 2 closed"}
        ).json()

        # Act
        client.post(f"/announcements/{created['id']}/read", headers=staff_headers)
        listing = client.get("/announcements", headers=staff_headers).json()

        # Assert
        assert listing["announcements"][0]["is_read"] is True
