# Python imports
from os.path import join

from .common import *

# ##### DEBUG CONFIGURATION ###############################
DEBUG = True

# allow all hosts during development
ALLOWED_HOSTS = ['*']

# ##### EMAIL CONFIGURATION ###############################
DEFAULT_FROM_EMAIL = "clubhouse-test@clubhouse.example"
BCC_EMAIL_TO = []
EMAIL_BACKEND = 'django.core.mail.backends.console.EmailBackend'

# ##### DATABASE CONFIGURATION ############################
DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': join(PROJECT_ROOT, 'run', 'dev.sqlite3'),
    },
}

# ##### LOGGING CONFIGURATION #############################
LOGGING['loggers']['apps']['level'] = 'DEBUG'
