from django.db.models import RestrictedError


class DeletionRestricted(RestrictedError):
    """Deleting the notification would orphan the group members pointing at it."""

    def __init__(self, msg, restricted_objects=()):
        super().__init__(msg, set(restricted_objects))
