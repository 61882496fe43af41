"""Development settings for SlotBook.

This module extends the base settings with development specific
configuration, such as enabling debug and allowing all hosts. Do not use
these settings in production!
"""

from .base import *  # noqa: F401,F403

# Enable debug mode for development
DEBUG = True

# Allow all hosts in development
ALLOWED_HOSTS = ['*']

# Console email backend; notifications are an external collaborator
EMAIL_BACKEND = 'django.core.mail.backends.console.EmailBackend'

# Human-readable log lines instead of JSON while developing
LOGGING['formatters']['json']['processor'] = structlog.dev.ConsoleRenderer()  # noqa: F405
