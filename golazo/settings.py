"""
Django settings for running the tournament engine's management commands
and test suite. The engine itself needs no database.
"""
import os

SECRET_KEY = os.environ.get('GOLAZO_SECRET_KEY', 'golazo-development-key')

DEBUG = os.environ.get('GOLAZO_DEBUG', '') == '1'

INSTALLED_APPS = [
    'golazo.tournament_core',
]

DATABASES = {}

USE_TZ = True

# Default bracket seeding used by the simulate_edition command
GOLAZO_DEFAULT_SEEDING = os.environ.get('GOLAZO_DEFAULT_SEEDING', 'traditional')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '%(levelname)s %(name)s: %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'loggers': {
        'golazo': {
            'handlers': ['console'],
            'level': 'DEBUG' if DEBUG else 'INFO',
        },
    },
}
