"""Tests for notification filtering, search and sorting."""

import unittest
from datetime import datetime, timedelta, timezone

from tests.factories import make_notification

from catalog_notifications.enums import NotificationFilter, SortOrder
from catalog_notifications.services import filter_notifications

NOW = datetime(2025, 5, 1, 12, 0, tzinfo=timezone.utc)


def _at(hours_ago: int) -> str:
    return (NOW - timedelta(hours=hours_ago)).isoformat()


class TestFilterNotifications(unittest.TestCase):
    """Test cases for ``filter_notifications``."""

    def setUp(self):
        """Set up test fixtures."""
        self.comment = make_notification(
            id=1,
            notificationType="COMMENT",
            message="New comment on your project",
            commentText="Looks great",
            projectTitle=None,
            createdAt=_at(3),
        )
        self.approval = make_notification(
            id=2,
            notificationType="APPROVAL",
            message="Your project was approved",
            projectTitle="Solar Tracker",
            isRead=True,
            createdAt=_at(1),
        )
        self.rejection = make_notification(
            id=3,
            notificationType="REJECTION",
            message="Your project was rejected",
            projectTitle=None,
            createdAt=_at(2),
        )
        self.undated = make_notification(
            id=4,
            notificationType="SUBMIT",
            message="Project submitted",
            projectTitle=None,
            createdAt=None,
        )
        self.unknown = make_notification(
            id=5,
            notificationType="MENTION",
            message="You were mentioned",
            projectTitle=None,
            createdAt=_at(5),
        )
        self.notifications = [
            self.comment,
            self.approval,
            self.rejection,
            self.undated,
            self.unknown,
        ]

    def ids(self, notifications):
        return [n.id for n in notifications]

    def test_all_sorted_newest_first_undated_last(self):
        """Test the default query returns everything newest first."""
        result = filter_notifications(self.notifications)

        self.assertEqual(self.ids(result), [2, 3, 1, 5, 4])

    def test_oldest_first(self):
        """Test oldest-first ordering keeps undated entries last."""
        result = filter_notifications(self.notifications, sort=SortOrder.OLDEST)

        self.assertEqual(self.ids(result), [5, 1, 3, 2, 4])

    def test_unread_filter(self):
        """Test the unread filter drops read entries."""
        result = filter_notifications(self.notifications, filter=NotificationFilter.UNREAD)

        self.assertNotIn(2, self.ids(result))
        self.assertEqual(len(result), 4)

    def test_type_filters(self):
        """Test each type filter keeps only its type."""
        cases = {
            NotificationFilter.COMMENTS: [1],
            NotificationFilter.APPROVALS: [2],
            NotificationFilter.REJECTIONS: [3],
            NotificationFilter.REACTIONS: [],
            NotificationFilter.SUBMITS: [4],
        }
        for filter_, expected in cases.items():
            with self.subTest(filter=filter_):
                result = filter_notifications(self.notifications, filter=filter_)
                self.assertEqual(self.ids(result), expected)

    def test_filter_accepts_plain_strings(self):
        """Test filter and sort values may be passed as strings."""
        result = filter_notifications(self.notifications, filter="comments", sort="oldest")

        self.assertEqual(self.ids(result), [1])

    def test_search_is_case_insensitive_across_fields(self):
        """Test search matches message, project title and comment text."""
        self.assertEqual(self.ids(filter_notifications(self.notifications, search="REJECTED")), [3])
        self.assertEqual(self.ids(filter_notifications(self.notifications, search="solar")), [2])
        self.assertEqual(self.ids(filter_notifications(self.notifications, search="looks")), [1])

    def test_search_combined_with_filter(self):
        """Test search and filter both apply."""
        result = filter_notifications(
            self.notifications, filter=NotificationFilter.UNREAD, search="project"
        )

        self.assertEqual(self.ids(result), [3, 1, 4])

    def test_blank_search_matches_everything(self):
        """Test a whitespace-only search is ignored."""
        self.assertEqual(len(filter_notifications(self.notifications, search="   ")), 5)

    def test_input_is_not_modified(self):
        """Test the query returns a new list."""
        original = list(self.notifications)

        filter_notifications(self.notifications, sort=SortOrder.OLDEST)

        self.assertEqual(self.notifications, original)

    def test_invalid_filter_raises(self):
        """Test an unknown filter name is rejected."""
        with self.assertRaises(ValueError):
            filter_notifications(self.notifications, filter="everything")


if __name__ == "__main__":
    unittest.main()
