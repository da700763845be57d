from django.conf import settings
from django.core.signals import setting_changed

DEFAULTS = {
    'OPENED_INDEX_LIMIT': 10,
    'TABLE_NAME': 'notifications',
    'GROUP_EXPIRY_DELAY': None,
}


class NotificationSettings:
    """
    Read-only view over ``settings.NOTIFICATIONS`` with defaults filled in.

    Values are resolved on first access and cached until the Django setting
    changes (tests use ``override_settings``).
    """
    def __init__(self, defaults=None):
        self.defaults = defaults or DEFAULTS
        self._cached_attrs = set()

    @property
    def user_settings(self):
        if not hasattr(self, '_user_settings'):
            self._user_settings = getattr(settings, 'NOTIFICATIONS', {}) or {}
        return self._user_settings

    def __getattr__(self, attr):
        if attr not in self.defaults:
            raise AttributeError(f"Invalid notifications setting: '{attr}'")
        val = self.user_settings.get(attr, self.defaults[attr])
        self._cached_attrs.add(attr)
        setattr(self, attr, val)
        return val

    def reload(self):
        for attr in self._cached_attrs:
            delattr(self, attr)
        self._cached_attrs.clear()
        if hasattr(self, '_user_settings'):
            delattr(self, '_user_settings')


notification_settings = NotificationSettings(DEFAULTS)


def reload_notification_settings(*args, **kwargs):
    if kwargs['setting'] == 'NOTIFICATIONS':
        notification_settings.reload()


setting_changed.connect(reload_notification_settings)
