from datetime import timedelta

import pytest
from django.core.exceptions import ValidationError
from django.db.models import RestrictedError
from django.utils import timezone

from notifications.exceptions import DeletionRestricted
from notifications.models import Notification

pytestmark = pytest.mark.django_db


class TestValidation:
    def test_key_is_required(self, target, make_comment):
        with pytest.raises(ValidationError) as excinfo:
            Notification.objects.create(target=target, notifiable=make_comment(), key="")
        assert 'key' in excinfo.value.message_dict

    def test_target_is_required(self, make_comment):
        with pytest.raises(ValidationError) as excinfo:
            Notification.objects.create(notifiable=make_comment(), key="comment.default")
        assert 'target' in excinfo.value.message_dict

    def test_notifiable_is_required(self, target):
        with pytest.raises(ValidationError) as excinfo:
            Notification.objects.create(target=target, key="comment.default")
        assert 'notifiable' in excinfo.value.message_dict

    def test_member_cannot_own_members(self, make_notification):
        owner = make_notification()
        member = make_notification(owner=owner)

        with pytest.raises(ValidationError) as excinfo:
            make_notification(owner=member)
        assert 'group_owner' in excinfo.value.message_dict

    def test_missing_group_owner_is_a_validation_error(self, target, make_comment):
        with pytest.raises(ValidationError) as excinfo:
            Notification.objects.create(
                target=target, notifiable=make_comment(), key="comment.default", group_owner_id=987654,
            )
        assert 'group_owner' in excinfo.value.message_dict

    def test_parameters_round_trip_as_mapping(self, target, make_comment):
        notification = Notification.objects.create(
            target=target, notifiable=make_comment(), key="comment.default",
            parameters={"title": "Hello", "count": 2},
        )
        notification.refresh_from_db()
        assert notification.parameters == {"title": "Hello", "count": 2}

    def test_polymorphic_references_resolve(self, make_notification, target, article, notifiers):
        notification = make_notification(group=article, notifier=notifiers[0])
        notification = Notification.objects.get(pk=notification.pk)

        assert notification.target == target
        assert notification.group == article
        assert notification.notifier == notifiers[0]


class TestDeletion:
    def test_deleting_owner_with_members_is_restricted(self, make_notification):
        owner = make_notification()
        members = {make_notification(owner=owner), make_notification(owner=owner)}

        with pytest.raises(DeletionRestricted) as excinfo:
            owner.delete()
        assert str(excinfo.value.args[0])
        assert excinfo.value.restricted_objects == members
        assert Notification.objects.filter(pk=owner.pk).exists()

    def test_deleting_owner_without_members_succeeds(self, make_notification):
        owner = make_notification()
        owner_id = owner.pk

        owner.delete()
        assert not Notification.objects.filter(pk=owner_id).exists()

    def test_deleting_member_succeeds(self, make_notification):
        owner = make_notification()
        member = make_notification(owner=owner)

        member.delete()
        assert owner.group_members.count() == 0
        owner.delete()

    def test_bulk_delete_of_owner_alone_is_restricted(self, make_notification):
        owner = make_notification()
        make_notification(owner=owner)

        with pytest.raises(RestrictedError):
            Notification.objects.filter(pk=owner.pk).delete()

    def test_bulk_delete_of_whole_group_succeeds(self, make_notification, target):
        owner = make_notification()
        make_notification(owner=owner)

        Notification.objects.filtered_by_target(target).delete()
        assert not Notification.objects.exists()


class TestOpen:
    def test_open_owner_opens_members(self, owner_with_members):
        opened_at = timezone.now()

        assert owner_with_members.open(opened_at=opened_at) == 4
        owner_with_members.refresh_from_db()
        assert owner_with_members.opened_at == opened_at
        assert not owner_with_members.group_members.unopened_only().exists()

    def test_open_without_members(self, owner_with_members):
        assert owner_with_members.open(with_members=False) == 1
        assert owner_with_members.group_members.unopened_only().count() == 3

    def test_open_is_monotonic(self, make_notification):
        first_opened = timezone.now() - timedelta(days=1)
        notification = make_notification()
        notification.open(opened_at=first_opened)

        assert notification.open() == 0
        notification.refresh_from_db()
        assert notification.opened_at == first_opened

    def test_open_member_only_opens_itself(self, owner_with_members):
        member = owner_with_members.group_members.unopened_only().first()

        assert member.open() == 1
        owner_with_members.refresh_from_db()
        assert owner_with_members.is_unopened

    def test_open_all_of_target(self, owner_with_members, make_notification, target, other_target):
        make_notification(for_target=other_target)

        assert Notification.objects.open_all_of(target) == 4
        assert not Notification.objects.filtered_by_target(target).unopened_only().exists()
        assert Notification.objects.filtered_by_target(other_target).unopened_only().count() == 1

    def test_open_all_of_with_filters(self, make_notification, target):
        make_notification(key="comment.default")
        liked = make_notification(key="article.liked")

        assert Notification.objects.open_all_of(target, filtered_by_key="article.liked") == 1
        liked.refresh_from_db()
        assert liked.is_opened
        assert Notification.objects.unopened_only().count() == 1

    def test_str(self, make_notification):
        notification = make_notification(key="comment.default")
        assert "comment.default" in str(notification)
