import os

os.environ.setdefault('SECRET_KEY', 'test-secret-key-not-for-production-use')
os.environ.setdefault('DATABASE_URL', 'sqlite://:memory:')

from notifyhub.settings import *  # noqa: E402,F401,F403
from notifyhub.settings import INSTALLED_APPS, REST_FRAMEWORK  # noqa: E402

INSTALLED_APPS = INSTALLED_APPS + ['tests.testapp']

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

REST_FRAMEWORK = {**REST_FRAMEWORK, 'DEFAULT_THROTTLE_CLASSES': []}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
