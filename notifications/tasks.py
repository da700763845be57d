import logging
from celery import shared_task
from django.contrib.contenttypes.models import ContentType
from django.core.exceptions import ObjectDoesNotExist
from django.utils.dateparse import parse_datetime

from .models import Notification

logger = logging.getLogger(__name__)


@shared_task
def open_all_notifications_task(target_type_id, target_id, opened_at=None, filter_options=None):
    try:
        content_type = ContentType.objects.get_for_id(target_type_id)
        target = content_type.get_object_for_this_type(pk=target_id)
    except ObjectDoesNotExist:
        logger.warning(f"Could not open notifications: target {target_type_id}:{target_id} not found.")
        return 0

    opened_count = Notification.objects.open_all_of(
        target,
        opened_at=parse_datetime(opened_at) if opened_at else None,
        **(filter_options or {})
    )
    logger.info(f"Opened {opened_count} notification(s) for target {target_type_id}:{target_id} in background")
    return opened_count
