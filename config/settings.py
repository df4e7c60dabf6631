import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'insecure-dev-key')
DEBUG = os.environ.get('DJANGO_DEBUG', '0') == '1'
ALLOWED_HOSTS = os.environ.get('DJANGO_ALLOWED_HOSTS', 'localhost').split(',')

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'ecount_sync',
]

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': os.environ.get('DATABASE_PATH', BASE_DIR / 'db.sqlite3'),
    }
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'
USE_TZ = True
TIME_ZONE = 'Asia/Seoul'

CELERY_BROKER_URL = os.environ.get('CELERY_BROKER_URL', 'redis://localhost:6379/0')
CELERY_TASK_ALWAYS_EAGER = os.environ.get('CELERY_TASK_ALWAYS_EAGER', '0') == '1'

# ECOUNT ERP connector; leaving the credentials empty disables the sync.
ECOUNT_API_COMPANY_CODE = os.environ.get('ECOUNT_API_COMPANY_CODE', '')
ECOUNT_API_USER_ID = os.environ.get('ECOUNT_API_USER_ID', '')
ECOUNT_API_CERT_KEY = os.environ.get('ECOUNT_API_CERT_KEY', '')
ECOUNT_API_ZONE = os.environ.get('ECOUNT_API_ZONE', '')
ECOUNT_API_BASE_URL = os.environ.get('ECOUNT_API_BASE_URL', '')
ECOUNT_API_TIMEOUT = os.environ.get('ECOUNT_API_TIMEOUT', '10')
ECOUNT_API_LANG = os.environ.get('ECOUNT_API_LANG', 'ko-KR')
ECOUNT_API_USE_MOCK = os.environ.get('ECOUNT_API_USE_MOCK', 'false').lower() == 'true'

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'default': {'format': '%(asctime)s %(levelname)s %(name)s: %(message)s'},
    },
    'handlers': {
        'console': {'class': 'logging.StreamHandler', 'formatter': 'default'},
    },
    'loggers': {
        'ecount_sync': {
            'handlers': ['console'],
            'level': os.environ.get('ECOUNT_LOG_LEVEL', 'INFO'),
        },
    },
}
