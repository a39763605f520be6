"""
Knowledge Routes Integration Tests
==================================

Covers:
- Document authoring permissions and draft visibility
- Review lifecycle: submit, approve or reject, publish, archive
- Editing rules for rejected and published documents
- Read acknowledgements
- Question bank answers and answer hiding
"""

import pytest

from staffhub.core.enums import NotificationType
from staffhub.models.knowledge import DocumentAcknowledgment
from staffhub.models.notification import Notification


pytestmark = pytest.mark.integration


@pytest.fixture
def draft(client, head_headers):
    response = client.post(
        "/knowledge/documents",
        headers=head_headers,
        json={
            "title": "Late Check-out SOP",
            "content": "Offer until 14:00 when occupancy allows.",
            "doc_type": "sop",
            "requires_acknowledgment": True,
        },
    )
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def published(client, draft, head_headers, manager_headers):
    doc_id = draft["id"]
    client.post(f"/knowledge/documents/{doc_id}/submit", headers=head_headers)
    client.post(f"/knowledge/documents/{doc_id}/review", headers=manager_headers, json={"approve": True})
    response = client.post(f"/knowledge/documents/{doc_id}/publish", headers=manager_headers)
    assert response.status_code == 200
    return response.json()


class TestAuthoring:
    """Tests for document creation and draft visibility."""

    def test_draft_created(self, draft, grand_hotel):
        """Test a new document starts as a property draft."""
        # Assert
        assert draft["status"] == "DRAFT"
        assert draft["visibility"] == "property"
        assert draft["property_id"] == str(grand_hotel.id)
        assert draft["version"] == 1

    def test_staff_cannot_author(self, client, staff_headers):
        """Test staff cannot create documents."""
        # Act
        response = client.post("/knowledge/documents", headers=staff_headers, json={"title": "My notes"})

        # Assert
        assert response.status_code == 403

    def test_drafts_hidden_from_staff(self, client, draft, staff_headers, head_headers):
        """Test drafts are only listed for their author."""
        # Act
        staff_docs = client.get("/knowledge/documents", headers=staff_headers).json()
        head_docs = client.get("/knowledge/documents", headers=head_headers).json()
        detail = client.get(f"/knowledge/documents/{draft['id']}", headers=staff_headers)

        # Assert
        assert staff_docs["total"] == 0
        assert head_docs["total"] == 1
        assert detail.status_code == 404


class TestReviewLifecycle:
    """Tests for submit, review, publish and archive."""

    def test_submit_notifies_reviewers(self, client, db_session, draft, head_headers, property_manager):
        """Test submitting a draft asks the property manager to review it."""
        # Act
        response = client.post(f"/knowledge/documents/{draft['id']}/submit", headers=head_headers)

        # Assert
        assert response.json()["status"] == "PENDING_REVIEW"
        notified = {n.user_id for n in db_session.query(Notification).filter(
            Notification.type == NotificationType.APPROVAL_REQUIRED
        )}
        assert notified == {property_manager.id}

    def test_reviewer_sees_pending(self, client, draft, head_headers, manager_headers):
        """Test reviewers can filter for documents awaiting review."""
        # Arrange
        client.post(f"/knowledge/documents/{draft['id']}/submit", headers=head_headers)

        # Act
        response = client.get("/knowledge/documents?status=PENDING_REVIEW", headers=manager_headers)

        # Assert
        assert [d["id"] for d in response.json()["documents"]] == [draft["id"]]

    def test_department_head_cannot_review(self, client, draft, head_headers):
        """Test reviewing needs the documents approve permission."""
        # Arrange
        client.post(f"/knowledge/documents/{draft['id']}/submit", headers=head_headers)

        # Act
        response = client.post(
            f"/knowledge/documents/{draft['id']}/review", headers=head_headers, json={"approve": True}
        )

        # Assert
        assert response.status_code == 403

    def test_review_requires_pending(self, client, draft, manager_headers):
        """Test a draft cannot be approved before it is submitted."""
        # Act
        response = client.post(
            f"/knowledge/documents/{draft['id']}/review", headers=manager_headers, json={"approve": True}
        )

        # Assert
        assert response.status_code == 400
        assert response.json()["details"]["current_status"] == "DRAFT"

    def test_publish_makes_visible(self, client, published, staff_headers, seaside_headers):
        """Test published documents reach property staff but not other properties."""
        # Act
        staff_docs = client.get("/knowledge/documents", headers=staff_headers).json()
        seaside = client.get(f"/knowledge/documents/{published['id']}", headers=seaside_headers)

        # Assert
        assert published["status"] == "PUBLISHED"
        assert published["published_at"] is not None
        assert [d["id"] for d in staff_docs["documents"]] == [published["id"]]
        assert seaside.status_code == 404

    def test_detail_lists_approvals(self, client, published, head_headers, property_manager):
        """Test the detail view carries the review record."""
        # Act
        detail = client.get(f"/knowledge/documents/{published['id']}", headers=head_headers).json()

        # Assert
        assert len(detail["approvals"]) == 1
        assert detail["approvals"][0]["status"] == "approved"
        assert detail["approvals"][0]["reviewed_by"] == str(property_manager.id)

    def test_reject_then_edit_returns_to_draft(self, client, draft, head_headers, manager_headers):
        """Test editing a rejected document moves it back to draft with a new version."""
        # Arrange
        doc_id = draft["id"]
        client.post(f"/knowledge/documents/{doc_id}/submit", headers=head_headers)
        rejected = client.post(
            f"/knowledge/documents/{doc_id}/review",
            headers=manager_headers,
            json={"approve": False, "comment": "Add the fee schedule"},
        )

        # Act
        response = client.patch(
            f"/knowledge/documents/{doc_id}",
            headers=head_headers,
            json={"content": "Offer until 14:00. Fee applies after 12:00."},
        )

        # Assert
        assert rejected.json()["status"] == "REJECTED"
        assert response.status_code == 200
        assert response.json()["status"] == "DRAFT"
        assert response.json()["version"] == 2

    def test_published_cannot_be_edited(self, client, published, head_headers):
        """Test published documents are read-only."""
        # Act
        response = client.patch(
            f"/knowledge/documents/{published['id']}", headers=head_headers, json={"title": "Renamed"}
        )

        # Assert
        assert response.status_code == 422

    def test_archive(self, client, published, manager_headers, staff_headers):
        """Test archived documents drop out of the staff library."""
        # Act
        response = client.post(f"/knowledge/documents/{published['id']}/archive", headers=manager_headers)
        staff_docs = client.get("/knowledge/documents", headers=staff_headers).json()

        # Assert
        assert response.json()["status"] == "ARCHIVED"
        assert staff_docs["total"] == 0


class TestAcknowledgements:
    """Tests for POST /knowledge/documents/{id}/acknowledge."""

    def test_acknowledge_once(self, client, db_session, published, staff_headers):
        """Test acknowledging twice keeps the first record."""
        # Act
        first = client.post(f"/knowledge/documents/{published['id']}/acknowledge", headers=staff_headers)
        second = client.post(f"/knowledge/documents/{published['id']}/acknowledge", headers=staff_headers)
        detail = client.get(f"/knowledge/documents/{published['id']}", headers=staff_headers).json()

        # Assert
        assert first.status_code == 200
        assert second.status_code == 200
        assert db_session.query(DocumentAcknowledgment).count() == 1
        assert detail["acknowledged"] is True

    def test_draft_cannot_be_acknowledged(self, client, draft, head_headers):
        """Test only published documents can be acknowledged."""
        # Act
        response = client.post(f"/knowledge/documents/{draft['id']}/acknowledge", headers=head_headers)

        # Assert
        assert response.status_code == 422


class TestQuestions:
    """Tests for the question bank."""

    def test_answers_hidden_from_staff(self, client, head_headers, staff_headers):
        """Test staff do not receive correct answers when listing questions."""
        # Arrange
        client.post(
            "/knowledge/questions",
            headers=head_headers,
            json={
                "question_type": "mcq",
                "prompt": "Latest standard check-out time?",
                "options": ["11:00", "12:00", "14:00"],
                "correct_answer": "12:00",
            },
        )

        # Act
        staff_view = client.get("/knowledge/questions", headers=staff_headers).json()
        head_view = client.get("/knowledge/questions", headers=head_headers).json()

        # Assert
        assert "correct_answer" not in staff_view["questions"][0]
        assert head_view["questions"][0]["correct_answer"] == "12:00"

    def test_mcq_answer_must_be_option(self, client, head_headers):
        """Test multiple choice answers must be among the options."""
        # Act
        response = client.post(
            "/knowledge/questions",
            headers=head_headers,
            json={
                "question_type": "mcq",
                "prompt": "Pick one",
                "options": ["a", "b"],
                "correct_answer": "c",
            },
        )

        # Assert
        assert response.status_code == 422

    def test_true_false_ignores_case(self, client, head_headers, staff_headers):
        """Test true/false answers are checked without regard to case."""
        # Arrange
        question = client.post(
            "/knowledge/questions",
            headers=head_headers,
            json={"question_type": "true_false", "prompt": "Fire doors may be propped open.", "correct_answer": "False"},
        ).json()

        # Act
        response = client.post(
            f"/knowledge/questions/{question['id']}/answer", headers=staff_headers, json={"answer": "FALSE"}
        )

        # Assert
        assert question["correct_answer"] == "false"
        assert response.json()["correct"] is True

    def test_mcq_wrong_answer(self, client, head_headers, staff_headers):
        """Test a wrong answer is reported with the expected one."""
        # Arrange
        question = client.post(
            "/knowledge/questions",
            headers=head_headers,
            json={
                "question_type": "mcq",
                "prompt": "Who approves leave first?",
                "options": ["Supervisor", "HR"],
                "correct_answer": "Supervisor",
            },
        ).json()

        # Act
        response = client.post(
            f"/knowledge/questions/{question['id']}/answer", headers=staff_headers, json={"answer": "HR"}
        )

        # Assert
        assert response.json()["correct"] is False
        assert response.json()["correct_answer"] == "Supervisor"
