from django.contrib.contenttypes.models import ContentType
from rest_framework import serializers
from .models import Notification


def _reference(content_type_id, object_id):
    if content_type_id is None:
        return None
    content_type = ContentType.objects.get_for_id(content_type_id)
    return {"type": f"{content_type.app_label}.{content_type.model}", "id": object_id}


class NotificationSerializer(serializers.ModelSerializer):
    """
    Expects a shared ``GroupCounts`` under ``context['group_counts']`` so that a
    whole index is counted with one aggregate query per kind.
    """
    target = serializers.SerializerMethodField()
    notifiable = serializers.SerializerMethodField()
    group = serializers.SerializerMethodField()
    notifier = serializers.SerializerMethodField()
    is_group_owner = serializers.BooleanField(read_only=True)
    group_member_count = serializers.SerializerMethodField()
    group_notification_count = serializers.SerializerMethodField()
    group_member_notifier_count = serializers.SerializerMethodField()
    group_notifier_count = serializers.SerializerMethodField()

    class Meta:
        model = Notification
        fields = [
            'id', 'key', 'parameters', 'target', 'notifiable', 'group', 'notifier',
            'group_owner', 'is_group_owner', 'opened_at', 'created_at',
            'group_member_count', 'group_notification_count',
            'group_member_notifier_count', 'group_notifier_count',
        ]
        read_only_fields = fields

    def _counts(self):
        return self.context.get('group_counts')

    def get_target(self, obj):
        return _reference(obj.target_type_id, obj.target_id)

    def get_notifiable(self, obj):
        return _reference(obj.notifiable_type_id, obj.notifiable_id)

    def get_group(self, obj):
        return _reference(obj.group_type_id, obj.group_id)

    def get_notifier(self, obj):
        return _reference(obj.notifier_type_id, obj.notifier_id)

    def get_group_member_count(self, obj):
        return obj.group_member_count(counts=self._counts())

    def get_group_notification_count(self, obj):
        return obj.group_notification_count(counts=self._counts())

    def get_group_member_notifier_count(self, obj):
        return obj.group_member_notifier_count(counts=self._counts())

    def get_group_notifier_count(self, obj):
        return obj.group_notifier_count(counts=self._counts())


class OpenAllSerializer(serializers.Serializer):
    filtered_by_type = serializers.CharField(required=False)
    filtered_by_key = serializers.CharField(required=False)
    filtered_by_group_type = serializers.CharField(required=False)
    filtered_by_group_id = serializers.CharField(required=False)
    opened_at = serializers.DateTimeField(required=False)
