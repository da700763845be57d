import logging
from django.contrib.contenttypes.models import ContentType
from rest_framework import mixins, viewsets, permissions, status
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from django.utils.translation import gettext as _

from .aggregation import GroupCounts
from .conf import notification_settings
from .models import Notification
from .serializers import NotificationSerializer, OpenAllSerializer
from .services import notification_index
from .tasks import open_all_notifications_task

logger = logging.getLogger(__name__)

INDEX_FILTERS = ('auto', 'unopened', 'opened')


def _bool_param(value):
    return str(value).lower() in ('1', 'true', 'yes')


class NotificationViewSet(mixins.ListModelMixin,
                          mixins.RetrieveModelMixin,
                          mixins.DestroyModelMixin,
                          viewsets.GenericViewSet):
    """
    Notification index of the authenticated user, who is the target.
    """
    serializer_class = NotificationSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        return Notification.objects.filtered_by_target(self.request.user)

    def get_limit(self):
        raw = self.request.query_params.get('limit')
        if raw is None:
            return notification_settings.OPENED_INDEX_LIMIT
        try:
            limit = int(raw)
        except ValueError:
            raise ValidationError({'limit': _("A valid integer is required.")})
        if limit < 1:
            raise ValidationError({'limit': _("Ensure this value is greater than or equal to 1.")})
        return limit

    def get_serializer_context(self):
        context = super().get_serializer_context()
        if self.request is not None:
            context['group_counts'] = GroupCounts(self.get_queryset(), self.get_limit())
        return context

    def list(self, request, *args, **kwargs):
        params = request.query_params
        index_filter = params.get('filter', 'auto')
        if index_filter not in INDEX_FILTERS:
            raise ValidationError({'filter': _("Must be one of: auto, unopened, opened.")})

        limit = self.get_limit()
        reverse = _bool_param(params.get('reverse', False))
        with_group_members = _bool_param(params.get('with_group_members', False))

        queryset = self.get_queryset().filtered_by_options(
            filtered_by_type=params.get('filtered_by_type'),
            filtered_by_group_type=params.get('filtered_by_group_type'),
            filtered_by_group_id=params.get('filtered_by_group_id'),
            filtered_by_key=params.get('filtered_by_key'),
        ).with_group_owner()

        if index_filter == 'unopened':
            notifications = list(queryset.unopened_index(reverse=reverse, with_group_members=with_group_members)[:limit])
        elif index_filter == 'opened':
            notifications = list(queryset.opened_index(limit, reverse=reverse, with_group_members=with_group_members))
        else:
            notifications = notification_index(queryset, limit=limit, reverse=reverse, with_group_members=with_group_members)

        serializer = self.get_serializer(notifications, many=True)
        return Response(serializer.data)

    def perform_destroy(self, instance):
        notification_id = instance.pk
        instance.delete()
        logger.info(f"Notification {notification_id} deleted by user {self.request.user.id}")

    @action(detail=True, methods=['post'])
    def open(self, request, pk=None):
        notification = self.get_object()
        with_members = _bool_param(request.data.get('with_members', True))
        opened_count = notification.open(with_members=with_members)
        serializer = self.get_serializer(notification)
        return Response({'opened_count': opened_count, 'notification': serializer.data})

    @action(detail=False, methods=['post'])
    def open_all(self, request):
        serializer = OpenAllSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        options = dict(serializer.validated_data)
        opened_at = options.pop('opened_at', None)

        if _bool_param(request.query_params.get('async', False)):
            content_type = ContentType.objects.get_for_model(request.user)
            open_all_notifications_task.delay(
                content_type.id,
                str(request.user.pk),
                opened_at.isoformat() if opened_at else None,
                options,
            )
            return Response({'queued': True}, status=status.HTTP_202_ACCEPTED)

        opened_count = Notification.objects.open_all_of(request.user, opened_at=opened_at, **options)
        return Response({'opened_count': opened_count})

    @action(detail=False, methods=['get'])
    def keys(self, request):
        return Response(self.get_queryset().latest_order().uniq_keys())
