from .base import *

DEBUG = False

SECRET_KEY = 'test-secret-key'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

ALLOWED_HOSTS = ['testserver']

PAYSTACK_SECRET_KEY = 'sk_test_webhook_secret'
PAYSTACK_PUBLIC_KEY = 'pk_test_public'
PAYSTACK_BASE_URL = 'https://api.paystack.test'

WHATSAPP_ACCESS_TOKEN = ''
WHATSAPP_PHONE_NUMBER_ID = ''

LOGGING['root']['level'] = 'CRITICAL'
LOGGING['loggers']['django']['level'] = 'ERROR'
