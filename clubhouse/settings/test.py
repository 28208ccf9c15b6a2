from .common import *

# Also set by the CustomRunner, but pytest does not use that runner.
IN_UNITTEST = True

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    },
}

EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'

PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]

PAYMENT_FUNCTIONS_URL = 'https://functions.test'
PAYMENT_FUNCTIONS_KEY = 'test-key'

# Counts are cached across requests, which would leak between testcases (that reuse primary keys). Tests of the
# count cache itself override this with a local memory cache.
CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.dummy.DummyCache',
    },
}
