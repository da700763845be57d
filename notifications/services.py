import logging
from django.db import transaction

from .conf import notification_settings
from .models import Notification

logger = logging.getLogger(__name__)


def valid_group_owner(target, notifiable, key, group, group_expiry_delay=None):
    """
    Returns the group owner a new notification should join, or None when it
    must become an owner itself.

    Notifications are bundled by target, notifiable type, key and group, so
    different notifiables of the same type can share a group. Only unopened
    owners (created within ``group_expiry_delay`` when given) accept members.
    """
    if group is None:
        return None
    owners = (
        Notification.objects
        .filtered_by_target(target)
        .filtered_by_type(type(notifiable))
        .filtered_by_key(key)
        .filtered_by_group(group)
        .group_owners_only()
        .unopened_only()
    )
    if group_expiry_delay is not None:
        owners = owners.within_expiration_only(group_expiry_delay)
    return owners.earliest()


def notify_to(target, notifiable, key, group=None, notifier=None, parameters=None, group_expiry_delay=None):
    if group_expiry_delay is None:
        group_expiry_delay = notification_settings.GROUP_EXPIRY_DELAY

    with transaction.atomic():
        group_owner = valid_group_owner(target, notifiable, key, group, group_expiry_delay)
        notification = Notification(
            target=target,
            notifiable=notifiable,
            key=key,
            group=group,
            group_owner=group_owner,
            notifier=notifier,
            parameters=parameters or {},
        )
        notification.save()

    if group_owner is not None:
        logger.info(f"Notification {notification.pk} ({key}) joined group of {group_owner.pk}")
    else:
        logger.info(f"Notification {notification.pk} ({key}) created as group owner")
    return notification


def notify(targets, notifiable, key, **options):
    return [notify_to(target, notifiable, key, **options) for target in targets]


def notification_index(target_notifications, limit=None, reverse=False, with_group_members=False):
    """
    Arranges a target's notification index the way a notification list shows it.

    When the target has unopened notifications they come first, topped up with
    the most recent opened ones until ``limit`` is reached. Otherwise only the
    opened index is returned.
    """
    if limit is None:
        limit = notification_settings.OPENED_INDEX_LIMIT

    unopened_index = target_notifications.unopened_index(reverse=reverse, with_group_members=with_group_members)
    if not unopened_index.exists():
        return list(target_notifications.opened_index(limit, reverse=reverse, with_group_members=with_group_members))

    unopened = list(unopened_index[:limit])
    opened_limit = limit - len(unopened)
    if opened_limit > 0:
        unopened.extend(target_notifications.opened_index(opened_limit, reverse=reverse, with_group_members=with_group_members))
    return unopened
