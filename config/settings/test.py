"""Settings used by the test suite (pytest-django)."""

from .base import *  # noqa: F401,F403

SECRET_KEY = 'test-secret-key'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

AUDIT_SINK = 'database'
BOOKING_MAX_WRITE_ATTEMPTS = 3
HOTEL_NOTIFICATIONS_LIMIT = 50

# Let pytest's caplog see application records
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "loggers": {
        "apps": {"level": "DEBUG", "propagate": True},
        "shared": {"level": "DEBUG", "propagate": True},
    },
}
