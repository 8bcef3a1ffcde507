"""Production settings for the hotel booking core.

Sensitive values must come from environment variables; missing ones stop
the process at startup.
"""

from .base import *  # noqa: F401,F403

# Never run with debug enabled in production
DEBUG = False

SECRET_KEY = get_env('DJANGO_SECRET_KEY', required=True)  # noqa: F405

ALLOWED_HOSTS = [
    host.strip()
    for host in get_env('DJANGO_ALLOWED_HOSTS', required=True).split(',')  # noqa: F405
    if host.strip()
]

DATABASES['default']['CONN_MAX_AGE'] = int(get_env('DB_CONN_MAX_AGE', 60))  # noqa: F405

# Audit entries are written by a worker in production
AUDIT_SINK = get_env('AUDIT_SINK', 'celery')  # noqa: F405
