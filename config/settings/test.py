"""Test settings for SlotBook.

SQLite in memory by default; point ``DB_ENGINE`` at PostgreSQL to also run
the threaded concurrency tests, which need real row locks.
"""

from .base import *  # noqa: F401,F403

DEBUG = False

SECRET_KEY = 'test-secret-key'

if os.environ.get('DB_ENGINE', '').endswith('postgresql'):  # noqa: F405
    DATABASES = {  # noqa: F405
        'default': {
            'ENGINE': 'django.db.backends.postgresql',
            'NAME': os.environ.get('DB_NAME', 'slotbook_test'),  # noqa: F405
            'USER': os.environ.get('DB_USER', 'postgres'),  # noqa: F405
            'PASSWORD': os.environ.get('DB_PASSWORD', ''),  # noqa: F405
            'HOST': os.environ.get('DB_HOST', 'localhost'),  # noqa: F405
            'PORT': os.environ.get('DB_PORT', '5432'),  # noqa: F405
        }
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': ':memory:',
        }
    }

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

STORAGES = {
    'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
    'staticfiles': {'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage'},
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

PAYMENT_GATEWAY = 'apps.finances.gateways.OfflineGateway'
BOOKING_LOCK_TIMEOUT_MS = 2000
DEFAULT_CURRENCY = 'USD'
