import pytest
from django.contrib.contenttypes.models import ContentType
from django.utils import timezone

from notifications.models import Notification
from notifications.tasks import open_all_notifications_task

pytestmark = pytest.mark.django_db


class TestOpenAllNotificationsTask:
    def test_opens_target_notifications(self, owner_with_members, target):
        content_type = ContentType.objects.get_for_model(target)

        result = open_all_notifications_task.delay(content_type.id, str(target.pk))

        assert result.get() == 4
        assert not Notification.objects.filtered_by_target(target).unopened_only().exists()

    def test_passes_opened_at_and_filters(self, make_notification, target):
        opened_at = timezone.now().replace(microsecond=0)
        liked = make_notification(key="article.liked")
        make_notification(key="comment.default")
        content_type = ContentType.objects.get_for_model(target)

        count = open_all_notifications_task(
            content_type.id, str(target.pk), opened_at.isoformat(), {"filtered_by_key": "article.liked"}
        )

        assert count == 1
        liked.refresh_from_db()
        assert liked.opened_at == opened_at

    def test_missing_target_is_logged_and_skipped(self, target, caplog):
        content_type = ContentType.objects.get_for_model(target)

        assert open_all_notifications_task(content_type.id, "999999") == 0
        assert "not found" in caplog.text
