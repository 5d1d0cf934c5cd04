"""Test settings for the hotel reservations project.

In-memory SQLite, inline Celery and a fast password hasher.
"""

from .base import *  # noqa: F401,F403

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

HOTEL_AVAILABILITY = {
    'BLOCKING_STATUSES': ['confirmed'],
    'COMPLETED_BLOCKS_FUTURE': False,
    'MAX_WINDOW_DAYS': 366,
}

HOTEL_CURRENCY = 'USD'
