from django.contrib import admin, messages
from .models import Notification

@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ('id', 'key', 'target_type', 'target_id', 'group_owner', 'opened_at', 'created_at')
    list_filter = ('key', 'opened_at', 'created_at', 'target_type', 'notifiable_type')
    search_fields = ('key', 'target_id', 'notifiable_id')
    readonly_fields = ('created_at', 'updated_at')
    raw_id_fields = ('group_owner',)
    list_select_related = ('target_type', 'group_owner')
    list_per_page = 50
    actions = ['open_notifications']

    fieldsets = (
        (None, {
            'fields': ('key', 'parameters')
        }),
        ('References', {
            'fields': (
                ('target_type', 'target_id'),
                ('notifiable_type', 'notifiable_id'),
                ('group_type', 'group_id'),
                ('notifier_type', 'notifier_id'),
                'group_owner',
            )
        }),
        ('Status', {
            'fields': ('opened_at', 'created_at', 'updated_at')
        }),
    )

    def open_notifications(self, request, queryset):
        opened = sum(notification.open() for notification in queryset.group_owners_only())
        self.message_user(request, f"Opened {opened} notification(s).")
    open_notifications.short_description = "Open selected group owners and their members"

    def has_delete_permission(self, request, obj=None):
        if obj is not None and obj.is_group_owner and obj.group_members.exists():
            return False
        return super().has_delete_permission(request, obj)

    def delete_queryset(self, request, queryset):
        selected_ids = set(queryset.values_list('pk', flat=True))
        blocked_ids = set(
            Notification.objects.group_members_of_owner_ids_only(selected_ids)
            .exclude(pk__in=selected_ids)
            .values_list('group_owner_id', flat=True)
        )
        if blocked_ids:
            self.message_user(
                request,
                f"Skipped {len(blocked_ids)} group owner(s) that still have members.",
                level=messages.WARNING,
            )
        super().delete_queryset(request, queryset.exclude(pk__in=blocked_ids))
