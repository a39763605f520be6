"""
Feed Service Tests
==================

Covers:
- merge_feed_items ordering, naive timestamps and missing timestamps
- build_staff_feed sources: announcements, SOPs, documents, tasks,
  training, birthdays
- Completed tasks and other properties stay out of the feed
"""

from datetime import datetime, timedelta, timezone

import pytest

from staffhub.core.enums import DocumentStatus, DocumentType, DocumentVisibility, TaskStatus
from staffhub.db.base import utcnow
from staffhub.models.communication import Announcement
from staffhub.models.knowledge import Document
from staffhub.models.role_enum import Role
from staffhub.models.task import Task
from staffhub.models.training import TrainingAssignment, TrainingModule
from staffhub.services.feed_service import EPOCH, build_staff_feed, merge_feed_items


pytestmark = pytest.mark.unit


class TestMergeFeedItems:
    """Tests for merge_feed_items."""

    def test_newest_first_across_sources(self):
        """Test items from all sources are ordered newest first."""
        # Arrange
        base = datetime(2026, 10, 1, tzinfo=timezone.utc)
        announcements = [{"id": "a", "timestamp": base}]
        tasks = [{"id": "t", "timestamp": base + timedelta(hours=2)}]
        training = [{"id": "tr", "timestamp": base + timedelta(hours=1)}]

        # Act
        merged = merge_feed_items(announcements, tasks, training)

        # Assert
        assert [item["id"] for item in merged] == ["t", "tr", "a"]

    def test_naive_and_missing_timestamps(self):
        """Test naive timestamps are treated as UTC and missing ones sort last."""
        # Arrange
        items = [
            {"id": "none", "timestamp": None},
            {"id": "naive", "timestamp": datetime(2026, 1, 1)},
            {"id": "aware", "timestamp": datetime(2025, 1, 1, tzinfo=timezone.utc)},
        ]

        # Act
        merged = merge_feed_items(items)

        # Assert
        assert [item["id"] for item in merged] == ["naive", "aware", "none"]

    def test_empty_sources(self):
        """Test empty sources give an empty feed."""
        # Assert
        assert merge_feed_items([], []) == []

    def test_epoch_is_utc(self):
        """Test the fallback timestamp is timezone aware."""
        # Assert
        assert EPOCH.tzinfo is not None


@pytest.mark.integration
class TestBuildStaffFeed:
    """Tests for build_staff_feed."""

    def test_collects_every_source(
        self, db_session, staff_user, property_manager, department_head, grand_hotel, make_profile
    ):
        """Test each source contributes an item of its type."""
        # Arrange
        now = utcnow()
        db_session.add(Announcement(
            title="Staff party",
            content="Friday at the rooftop bar",
            property_id=grand_hotel.id,
            created_by=property_manager.id,
        ))
        db_session.add(Document(
            title="Check-in Procedure",
            doc_type=DocumentType.SOP,
            status=DocumentStatus.PUBLISHED,
            visibility=DocumentVisibility.PROPERTY,
            property_id=grand_hotel.id,
            published_at=now,
        ))
        db_session.add(Task(
            title="Count the float",
            assigned_to_id=staff_user.id,
            created_by_id=department_head.id,
            property_id=grand_hotel.id,
        ))
        module = TrainingModule(title="Fire Safety")
        db_session.add(module)
        db_session.flush()
        db_session.add(TrainingAssignment(
            module_id=module.id,
            assigned_to_user_id=staff_user.id,
            assigned_by_user_id=department_head.id,
        ))
        make_profile(
            Role.STAFF,
            grand_hotel,
            full_name="Bea Birthday",
            date_of_birth=now.date().replace(year=1992),
        )
        db_session.commit()

        # Act
        feed = build_staff_feed(db_session, staff_user)

        # Assert
        kinds = {item["type"] for item in feed}
        assert kinds == {"announcement", "sop_update", "task", "training", "birthday"}
        titles = {item["title"] for item in feed}
        assert "New SOP Published: Check-in Procedure" in titles
        assert "Happy Birthday, Bea Birthday!" in titles
        assert "Training Assigned: Fire Safety" in titles

    def test_feed_is_sorted(self, db_session, staff_user, grand_hotel, property_manager):
        """Test the feed is newest first."""
        # Arrange
        for hours in (3, 1, 2):
            db_session.add(Announcement(
                title=f"Notice {hours}",
                content="-",
                property_id=grand_hotel.id,
                created_at=utcnow() - timedelta(hours=hours),
            ))
        db_session.commit()

        # Act
        feed = build_staff_feed(db_session, staff_user)

        # Assert
        assert [item["title"] for item in feed] == ["Notice 1", "Notice 2", "Notice 3"]

    def test_excludes_finished_and_foreign_items(self, db_session, staff_user, seaside_resort, grand_hotel):
        """Test completed tasks and other properties' announcements are excluded."""
        # Arrange
        db_session.add(Task(
            title="Done already",
            assigned_to_id=staff_user.id,
            property_id=grand_hotel.id,
            status=TaskStatus.COMPLETED,
        ))
        db_session.add(Announcement(title="Beach closed", content="-", property_id=seaside_resort.id))
        db_session.commit()

        # Act
        feed = build_staff_feed(db_session, staff_user)

        # Assert
        assert feed == []
