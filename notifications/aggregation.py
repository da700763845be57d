"""
Group member aggregation for notification indexes.

Rendering a notification index needs, for every displayed group owner, how
many members sit behind it and how many distinct people caused them. Asking
the database once per owner is an N+1 pattern, so counts are computed in two
phases instead:

1. one ``GROUP BY group_owner_id`` query over all the target's group members
   (``compute_group_counts`` / ``compute_group_notifier_counts``), producing a
   mapping keyed by owner;
2. plain dictionary lookups per owner.

``GroupCounts`` holds the mappings for one render pass. It is not a
cross-request cache: build a new one per request.
"""
import logging
from django.db.models import Count, F
from django.utils.functional import cached_property

logger = logging.getLogger(__name__)


def compute_group_counts(member_notifications):
    """Returns ``{group_owner_id: member_count}`` for the given members."""
    rows = (
        member_notifications
        .order_by()
        .values('group_owner_id')
        .annotate(member_count=Count('id'))
    )
    return {row['group_owner_id']: row['member_count'] for row in rows}


def compute_group_notifier_counts(member_notifications):
    """
    Returns ``{(group_owner_id, notifier_type_id): distinct_notifier_count}``.

    Only members whose notifier has the owner's notifier type are counted, and
    members notified by the owner's own notifier are left out.
    """
    rows = (
        member_notifications
        .filter(notifier_type=F('group_owner__notifier_type'))
        .exclude(notifier_id=F('group_owner__notifier_id'))
        .order_by()
        .values('group_owner_id', 'notifier_type_id')
        .annotate(notifier_count=Count('notifier_id', distinct=True))
    )
    return {
        (row['group_owner_id'], row['notifier_type_id']): row['notifier_count']
        for row in rows
    }


class GroupCounts:
    """
    Memoized group member statistics for one target's notifications.

    ``target_notifications`` is the queryset of everything the target owns;
    ``opened_index_limit`` bounds the opened index and caps opened counts.
    Each mapping is computed on first use, then every owner is a lookup.
    """

    def __init__(self, target_notifications, opened_index_limit):
        self.target_notifications = target_notifications
        self.opened_index_limit = opened_index_limit

    def _unopened_members(self):
        return self.target_notifications.unopened_index_group_members_only().unopened_only()

    def _opened_members(self):
        return self.target_notifications.opened_index_group_members_only(self.opened_index_limit).opened_only_all()

    @cached_property
    def unopened_member_counts(self):
        counts = compute_group_counts(self._unopened_members())
        logger.debug(f"Computed unopened member counts for {len(counts)} group(s)")
        return counts

    @cached_property
    def opened_member_counts(self):
        counts = compute_group_counts(self._opened_members())
        logger.debug(f"Computed opened member counts for {len(counts)} group(s)")
        return counts

    @cached_property
    def unopened_notifier_counts(self):
        return compute_group_notifier_counts(self._unopened_members())

    @cached_property
    def opened_notifier_counts(self):
        return compute_group_notifier_counts(self._opened_members())

    def _cap(self, count):
        # Never report more than the opened index can show.
        return min(count, self.opened_index_limit)

    def unopened_group_member_count(self, owner):
        return self.unopened_member_counts.get(owner.pk, 0)

    def opened_group_member_count(self, owner):
        return self._cap(self.opened_member_counts.get(owner.pk, 0))

    def unopened_group_member_notifier_count(self, owner):
        return self.unopened_notifier_counts.get((owner.pk, owner.notifier_type_id), 0)

    def opened_group_member_notifier_count(self, owner):
        return self._cap(self.opened_notifier_counts.get((owner.pk, owner.notifier_type_id), 0))
