# Python imports
from os.path import abspath, basename, dirname, join, normpath

from django.utils.translation import gettext_lazy as _

# Import local_settings, if they exist
try:
    from .local_settings import *
except ImportError:
    pass


# ##### PATH CONFIGURATION ################################

# fetch Django's project directory
DJANGO_ROOT = dirname(dirname(abspath(__file__)))

# fetch the project_root
PROJECT_ROOT = dirname(DJANGO_ROOT)

# the name of the whole site
SITE_NAME = basename(DJANGO_ROOT)

# collect static files here
STATIC_ROOT = join(PROJECT_ROOT, 'run', 'static')

# collect media files here
MEDIA_ROOT = join(PROJECT_ROOT, 'run', 'media')

# ##### Internationalization ##############################
LANGUAGE_CODE = 'en'
TIME_ZONE = 'UTC'

USE_I18N = True

# enable timezone awareness by default
USE_TZ = True

LANGUAGES = (
    ('en', _('English')),
    ('tr', _('Turkish')),
)

MONETARY_DECIMAL_PLACES = 2
MONETARY_MAX_DIGITS = 12
DEFAULT_CURRENCY = 'TRY'

DEFAULT_AUTO_FIELD = 'django.db.models.AutoField'

# ##### APPLICATION CONFIGURATION #########################

# these are the apps
INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'reversion',
    'import_export',
    'hijack',
    'hijack.contrib.admin',
    'apps.people.apps.PeopleConfig',
    'apps.events.apps.EventsConfig',
    'apps.registrations.apps.RegistrationsConfig',
    'apps.payments.apps.PaymentsConfig',
    'apps.core.apps.CoreConfig',
]

# Middlewares
MIDDLEWARE = [
    'django.middleware.common.BrokenLinkEmailsMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.locale.LocaleMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'hijack.middleware.HijackUserMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

# template stuff
TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.contrib.auth.context_processors.auth',
                'django.template.context_processors.debug',
                'django.template.context_processors.i18n',
                'django.template.context_processors.request',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

# #### USER CONFIGURATION #################################
AUTH_USER_MODEL = 'people.Member'

# Reduce the max email address length, it is used as a unique index.
ACCOUNT_EMAIL_MAX_LENGTH = 64

LOGIN_URL = 'admin:login'
LOGIN_REDIRECT_URL = '/'

# ##### CACHE CONFIGURATION ###############################
CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'clubhouse',
    },
}

# Confirmed counts are invalidated on every registration change, so this only bounds staleness for changes made
# outside of the ORM (e.g. manual database edits).
REGISTRATION_COUNT_CACHE_TIMEOUT = 300

# ##### PAYMENT CONFIGURATION #############################

# Base url of the serverless functions that handle card refunds for the qnb and sipay providers.
PAYMENT_FUNCTIONS_URL = ''
PAYMENT_FUNCTIONS_KEY = ''
PAYMENT_FUNCTIONS_TIMEOUT = 30
MOLLIE_API_KEY = ''

# ##### SECURITY CONFIGURATION ############################

# We store the secret key here
# The required SECRET_KEY is fetched at the end of this file
SECRET_FILE = normpath(join(PROJECT_ROOT, 'run', 'SECRET.key'))

# ##### EMAIL CONFIGURATION ################################
DEFAULT_FROM_EMAIL = 'events@clubhouse.example'
BCC_EMAIL_TO = []
SERVER_EMAIL = 'events@clubhouse.example'
EMAIL_SUBJECT_PREFIX = "Clubhouse: "

# ##### DJANGO RUNNING CONFIGURATION ######################

# the default WSGI application
WSGI_APPLICATION = '%s.wsgi.application' % SITE_NAME

# the root URL configuration
ROOT_URLCONF = '%s.urls' % SITE_NAME

# the URL for static files
STATIC_URL = '/static/'

# the URL for media files
MEDIA_URL = '/media/'

TEST_RUNNER = 'clubhouse.testrunner.CustomRunner'

# ##### DEBUG CONFIGURATION ###############################
DEBUG = False

# ##### LOGGING CONFIGURATION #############################
LOGGING = {
    'version': 1,
    # Recommended, otherwise default loggers are disabled but not removed, which can be problematic for non-propagating
    # loggers (which then stop producing output but still prevent propagation).
    'disable_existing_loggers': False,
    'filters': {
        'ignore_404': {
            '()': 'clubhouse.common.log.Ignore404',
        },
    },
    'formatters': {
        'verbose': {
            'format': '{asctime} - {levelname} - {name} - {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'loggers': {
        'apps': {
            'handlers': ['console'],
            'level': 'INFO',
        },
    },
}


# finally grab the SECRET KEY
try:
    SECRET_KEY = open(SECRET_FILE).read().strip()
except IOError:
    try:
        import os

        from django.utils.crypto import get_random_string
        chars = 'abcdefghijklmnopqrstuvwxyz0123456789!$%&()=+-_'
        SECRET_KEY = get_random_string(50, chars)
        os.makedirs(dirname(SECRET_FILE), exist_ok=True)
        with open(SECRET_FILE, 'w') as f:
            f.write(SECRET_KEY)
    except IOError:
        raise Exception('Could not open %s for writing!' % SECRET_FILE)
