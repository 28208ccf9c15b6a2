# for now fetch the development settings only
from .common import *

# these persons receive error notification
ADMINS = (
    ('Webmasters', 'webmaster@clubhouse.example'),
)
MANAGERS = ADMINS

# turn off all debugging
DEBUG = False

# This replaces the "django" logger with one that is pretty much identical to the default, except:
#  - Normally stderr-logging only happens when DEBUG is True, but we want to always log to the UWSGI log (which helps
#    diagnosing startup errors and keeps logs).
#  - The mail_admins handler also sends out WARNING messages.
LOGGING['handlers']['mail_admins'] = {
    'level': 'WARNING',
    # These are already handled by BrokenLinksEmailMiddleware
    'filters': ['ignore_404'],
    'class': 'django.utils.log.AdminEmailHandler',
}
LOGGING['loggers']['django'] = {
    'handlers': ['console', 'mail_admins'],
    'level': 'INFO',
}
LOGGING['loggers']['apps']['handlers'] = ['console', 'mail_admins']

# ##### SERVER CONFIGURATION ##############################
ALLOWED_HOSTS = ['api.clubhouse.example']

# ##### DATABASE CONFIGURATION ############################
DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.postgresql',
        'HOST': 'db.local',
        'USER': 'clubhouse',
        # From local_settings
        'PASSWORD': DATABASE_PASSWORD,
        'NAME': 'clubhouse',
    },
}

# ##### CACHE CONFIGURATION ###############################
# Shared between workers, so invalidation by one worker is seen by all others.
CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.redis.RedisCache',
        'LOCATION': 'redis://cache.local:6379/1',
    },
}

# ##### PAYMENT CONFIGURATION #############################
# From local_settings
PAYMENT_FUNCTIONS_URL = FUNCTIONS_URL
PAYMENT_FUNCTIONS_KEY = FUNCTIONS_KEY
MOLLIE_API_KEY = MOLLIE_KEY

# ##### SECURITY CONFIGURATION ############################

# Note: Webserver guarantees only secure requests are processed and the
# (u)wsgi-protocol seems to pass on secure status automatically. The
# webserver also sets HSTS headers.
# Even so, let Django redirect to HTTPS as well, just in case the
# webserver config gets messed up.
SECURE_SSL_REDIRECT = True
# Session cookies will be marked as secure, so the browser will only
# send them over HTTPS
SESSION_COOKIE_SECURE = True

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
]
