import logging
from django.contrib.contenttypes.fields import GenericForeignKey
from django.contrib.contenttypes.models import ContentType
from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.db.models import Max, Q
from django.utils import timezone

from .aggregation import GroupCounts
from .conf import notification_settings
from .exceptions import DeletionRestricted

logger = logging.getLogger(__name__)


def _reference_lookup(prefix, instance):
    return {
        f"{prefix}_type": ContentType.objects.get_for_model(instance),
        f"{prefix}_id": str(instance.pk),
    }


def _type_lookup(prefix, declared_type):
    """
    Builds the filter for a polymorphic reference type given as a model class,
    a ContentType, an ``"app_label.model"`` string or a bare model name.
    """
    if isinstance(declared_type, ContentType):
        return {f"{prefix}_type": declared_type}
    if isinstance(declared_type, type) and issubclass(declared_type, models.Model):
        return {f"{prefix}_type": ContentType.objects.get_for_model(declared_type)}
    name = str(declared_type)
    if "." in name:
        app_label, model_name = name.split(".", 1)
        return {f"{prefix}_type__app_label": app_label, f"{prefix}_type__model": model_name.lower()}
    return {f"{prefix}_type__model": name.lower()}


class NotificationQuerySet(models.QuerySet):
    """
    Chainable filters over notifications.

    ``opened_only``, ``opened_index`` and ``opened_index(..., with_group_members=True)``
    return sliced querysets, so they must come last in a chain.
    """

    def group_owners_only(self):
        return self.filter(group_owner__isnull=True)

    def group_members_only(self):
        return self.filter(group_owner__isnull=False)

    def unopened_only(self):
        return self.filter(opened_at__isnull=True)

    def opened_only_all(self):
        # Unbounded, be careful on targets with a long history.
        return self.filter(opened_at__isnull=False)

    def opened_only(self, limit):
        return self.opened_only_all().latest_order()[:limit]

    def unopened_index(self, reverse=False, with_group_members=False):
        target_index = self.unopened_only() if with_group_members else self.group_owners_only().unopened_only()
        return target_index.earliest_order() if reverse else target_index.latest_order()

    def opened_index(self, limit, reverse=False, with_group_members=False):
        target_index = self.opened_only_all() if with_group_members else self.group_owners_only().opened_only_all()
        target_index = target_index.earliest_order() if reverse else target_index.latest_order()
        return target_index[:limit]

    def unopened_index_group_members_only(self):
        owner_ids = list(self.unopened_index().values_list('id', flat=True))
        return self.group_members_of_owner_ids_only(owner_ids)

    def opened_index_group_members_only(self, limit):
        """
        Members of the owners present in the opened index: the ``limit`` latest
        opened owners, plus the ``limit`` owners whose opened members are the
        most recent. Each window is bounded by owners, so a busy group never
        pushes another group's owner out.
        """
        opened_owner_ids = set(
            self.group_owners_only().opened_only_all().latest_order().values_list('id', flat=True)[:limit]
        )
        member_owners = (
            self.group_members_only().opened_only_all()
            .order_by()
            .values('group_owner_id')
            .annotate(last_created_at=Max('created_at'))
            .order_by('-last_created_at', '-group_owner_id')[:limit]
        )
        owner_ids = opened_owner_ids | {row['group_owner_id'] for row in member_owners}
        return self.group_members_of_owner_ids_only(owner_ids)

    def within_expiration_only(self, expiry_delay):
        return self.filter(created_at__gt=timezone.now() - expiry_delay)

    def group_members_of_owner_ids_only(self, owner_ids):
        return self.filter(group_owner_id__in=owner_ids)

    def filtered_by_target(self, target):
        return self.filter(**_reference_lookup('target', target))

    def filtered_by_instance(self, notifiable):
        return self.filter(**_reference_lookup('notifiable', notifiable))

    def filtered_by_type(self, notifiable_type):
        return self.filter(**_type_lookup('notifiable', notifiable_type))

    def filtered_by_group(self, group):
        return self.filter(**_reference_lookup('group', group))

    def filtered_by_key(self, key):
        return self.filter(key=key)

    def filtered_by_options(self, filtered_by_type=None, filtered_by_group=None,
                            filtered_by_group_type=None, filtered_by_group_id=None,
                            filtered_by_key=None, custom_filter=None):
        queryset = self
        if filtered_by_type:
            queryset = queryset.filtered_by_type(filtered_by_type)
        if filtered_by_group is not None:
            queryset = queryset.filtered_by_group(filtered_by_group)
        if filtered_by_group_type and filtered_by_group_id is not None:
            queryset = queryset.filter(**_type_lookup('group', filtered_by_group_type), group_id=str(filtered_by_group_id))
        if filtered_by_key:
            queryset = queryset.filtered_by_key(filtered_by_key)
        if custom_filter is not None:
            queryset = queryset.filter(custom_filter) if isinstance(custom_filter, Q) else queryset.filter(**custom_filter)
        return queryset

    def with_target(self):
        return self.prefetch_related('target')

    def with_notifiable(self):
        return self.prefetch_related('notifiable')

    def with_group(self):
        return self.prefetch_related('group')

    def with_group_owner(self):
        return self.select_related('group_owner')

    def with_group_members(self):
        return self.prefetch_related('group_members')

    def with_notifier(self):
        return self.prefetch_related('notifier')

    def latest_order(self):
        return self.order_by('-created_at', '-id')

    def earliest_order(self):
        return self.order_by('created_at', 'id')

    def latest(self, *fields):
        if fields:
            return super().latest(*fields)
        return self.latest_order().first()

    def earliest(self, *fields):
        if fields:
            return super().earliest(*fields)
        return self.earliest_order().first()

    def uniq_keys(self):
        # Plucking instead of DISTINCT keeps any ordering already on the query.
        return list(dict.fromkeys(self.values_list('key', flat=True)))

    def open_all_of(self, target, opened_at=None, **filter_options):
        opened_at = opened_at or timezone.now()
        count = (
            self.filtered_by_target(target)
            .unopened_only()
            .filtered_by_options(**filter_options)
            .update(opened_at=opened_at, updated_at=timezone.now())
        )
        logger.info(f"Opened {count} notification(s) of {target._meta.label} {target.pk}")
        return count

    def raise_delete_restriction_error(self, error_text, restricted_objects=()):
        raise DeletionRestricted(error_text, restricted_objects)


class Notification(models.Model):
    target_type = models.ForeignKey(ContentType, on_delete=models.CASCADE, related_name='+')
    target_id = models.CharField(max_length=255)
    target = GenericForeignKey('target_type', 'target_id')

    notifiable_type = models.ForeignKey(ContentType, on_delete=models.CASCADE, related_name='+')
    notifiable_id = models.CharField(max_length=255)
    notifiable = GenericForeignKey('notifiable_type', 'notifiable_id')

    group_type = models.ForeignKey(ContentType, on_delete=models.CASCADE, null=True, blank=True, related_name='+')
    group_id = models.CharField(max_length=255, null=True, blank=True)
    group = GenericForeignKey('group_type', 'group_id')

    # Null on group owners, set on group members.
    group_owner = models.ForeignKey(
        'self',
        on_delete=models.RESTRICT,
        null=True,
        blank=True,
        related_name='group_members'
    )

    notifier_type = models.ForeignKey(ContentType, on_delete=models.CASCADE, null=True, blank=True, related_name='+')
    notifier_id = models.CharField(max_length=255, null=True, blank=True)
    notifier = GenericForeignKey('notifier_type', 'notifier_id')

    key = models.CharField(max_length=255)
    parameters = models.JSONField(default=dict, blank=True)
    opened_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = NotificationQuerySet.as_manager()

    class Meta:
        db_table = notification_settings.TABLE_NAME
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['target_type', 'target_id', 'opened_at'], name='notification_target_idx'),
            models.Index(fields=['group_owner', 'opened_at'], name='notification_group_owner_idx'),
        ]

    def __str__(self):
        return f"Notification {self.pk} ({self.key}) for {self.target_type_id}:{self.target_id}"

    @property
    def is_group_owner(self):
        return self.group_owner_id is None

    @property
    def is_group_member(self):
        return self.group_owner_id is not None

    @property
    def is_opened(self):
        return self.opened_at is not None

    @property
    def is_unopened(self):
        return self.opened_at is None

    def clean(self):
        errors = {}
        if not self.target_type_id or not self.target_id:
            errors['target'] = "Target is required."
        if not self.notifiable_type_id or not self.notifiable_id:
            errors['notifiable'] = "Notifiable is required."
        if not self.key:
            errors['key'] = "Key is required."
        if self.group_owner_id is not None:
            if self.pk is not None and self.group_owner_id == self.pk:
                errors['group_owner'] = "A notification cannot own itself."
            else:
                owner_rows = list(
                    type(self).objects.filter(pk=self.group_owner_id).values_list('group_owner_id', flat=True)
                )
                if not owner_rows:
                    errors['group_owner'] = "Group owner does not exist."
                elif owner_rows[0] is not None:
                    errors['group_owner'] = "Group owner must not be a group member."
        if errors:
            raise ValidationError(errors)

    def save(self, *args, **kwargs):
        self.clean()
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if self.is_group_owner:
            member_count = self.group_members.count()
            if member_count:
                logger.warning(f"Refusing to delete notification {self.pk} with {member_count} group member(s)")
                self.raise_delete_restriction_error(
                    f"Cannot delete notification {self.pk} because {member_count} "
                    f"group member notification(s) still depend on it.",
                    self.group_members.all(),
                )
        return super().delete(*args, **kwargs)

    @classmethod
    def raise_delete_restriction_error(cls, error_text, restricted_objects=()):
        raise DeletionRestricted(error_text, restricted_objects)

    def target_notifications(self):
        return type(self).objects.filter(target_type_id=self.target_type_id, target_id=self.target_id)

    def open(self, opened_at=None, with_members=True):
        """
        Opens the notification and, when it is a group owner, its unopened
        members. Returns the number of notifications opened.
        """
        if self.is_opened:
            return 0
        opened_at = opened_at or timezone.now()
        member_count = 0
        with transaction.atomic():
            if with_members and self.is_group_owner:
                member_count = self.group_members.unopened_only().update(opened_at=opened_at, updated_at=timezone.now())
            self.opened_at = opened_at
            self.save(update_fields=['opened_at', 'updated_at'])
        return member_count + 1

    def _group_counts(self, limit=None, counts=None):
        if counts is not None:
            return counts
        if limit is None:
            limit = notification_settings.OPENED_INDEX_LIMIT
        return GroupCounts(self.target_notifications(), limit)

    def _count_owner(self):
        return self.group_owner if self.is_group_member else self

    def unopened_group_member_count(self, counts=None):
        return self._group_counts(counts=counts).unopened_group_member_count(self)

    def opened_group_member_count(self, limit=None, counts=None):
        return self._group_counts(limit, counts).opened_group_member_count(self)

    def unopened_group_member_notifier_count(self, counts=None):
        return self._group_counts(counts=counts).unopened_group_member_notifier_count(self)

    def opened_group_member_notifier_count(self, limit=None, counts=None):
        return self._group_counts(limit, counts).opened_group_member_notifier_count(self)

    def group_member_count(self, limit=None, counts=None):
        owner = self._count_owner()
        if owner.is_opened:
            return owner.opened_group_member_count(limit, counts)
        return owner.unopened_group_member_count(counts)

    def group_notification_count(self, limit=None, counts=None):
        return self.group_member_count(limit, counts) + 1

    def group_member_exists(self, limit=None, counts=None):
        return self.group_member_count(limit, counts) > 0

    def group_member_notifier_count(self, limit=None, counts=None):
        owner = self._count_owner()
        if owner.is_opened:
            return owner.opened_group_member_notifier_count(limit, counts)
        return owner.unopened_group_member_notifier_count(counts)

    def group_notifier_count(self, limit=None, counts=None):
        owner = self._count_owner()
        if owner.notifier_type_id is None:
            return 0
        return self.group_member_notifier_count(limit, counts) + 1
