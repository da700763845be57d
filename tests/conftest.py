"""
Shared fixtures for notification tests.

Users act as targets and notifiers, articles as groups and comments as
notifiables, mirroring a "new comment on your article" feed.
"""
from datetime import timedelta

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient

from notifications.models import Notification
from tests.testapp.models import Article, Comment

User = get_user_model()


@pytest.fixture()
def target(db):
    return User.objects.create_user(username="target", password="pass")


@pytest.fixture()
def other_target(db):
    return User.objects.create_user(username="other-target", password="pass")


@pytest.fixture()
def notifiers(db):
    return [User.objects.create_user(username=f"notifier-{i}", password="pass") for i in range(4)]


@pytest.fixture()
def article(target):
    return Article.objects.create(author=target, title="First article")


@pytest.fixture()
def other_article(target):
    return Article.objects.create(author=target, title="Second article")


@pytest.fixture()
def make_comment(article, notifiers):
    def _make(user=None, on=None):
        return Comment.objects.create(article=on or article, user=user or notifiers[0], body="Nice")
    return _make


@pytest.fixture()
def make_notification(target, make_comment):
    """
    Creates notifications directly, bypassing group owner resolution, so tests
    control the owner/member layout and timestamps.
    """
    def _make(owner=None, opened=False, notifier=None, group=None, key="comment.default",
              for_target=None, age=None, notifiable=None):
        now = timezone.now()
        return Notification.objects.create(
            target=for_target or target,
            notifiable=notifiable or make_comment(user=notifier if isinstance(notifier, User) else None),
            key=key,
            group=group if group is not None else (owner.group if owner else None),
            group_owner=owner,
            notifier=notifier,
            opened_at=now if opened else None,
            created_at=now - age if age is not None else now,
        )
    return _make


@pytest.fixture()
def owner_with_members(make_notification, article, notifiers):
    """
    Unopened owner O with 3 unopened and 2 opened members, notifier N.
    """
    notifier = notifiers[0]
    owner = make_notification(group=article, notifier=notifier, age=timedelta(minutes=10))
    for notifier_user in notifiers[1:4]:
        make_notification(owner=owner, notifier=notifier_user)
    for _ in range(2):
        make_notification(owner=owner, notifier=notifiers[1], opened=True)
    return owner


@pytest.fixture()
def api_client(target):
    client = APIClient()
    client.force_authenticate(user=target)
    return client
