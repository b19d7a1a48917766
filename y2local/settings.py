"""
Django settings for y2local project.

All runtime knobs come from environment variables so the same image can run
locally and behind a process manager. No database is configured: the proxy
keeps no state between requests.
"""

import os
import shutil
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ['1', 'true', 'yes', 'on']


SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'django-insecure-y2local-dev-key')

DEBUG = _env_bool('DJANGO_DEBUG', False)

ALLOWED_HOSTS = [
    host.strip() for host in os.environ.get('DJANGO_ALLOWED_HOSTS', '*').split(',') if host.strip()
]

INSTALLED_APPS = [
    'proxy',
]

MIDDLEWARE = [
    'django.middleware.common.CommonMiddleware',
]

ROOT_URLCONF = 'y2local.urls'

WSGI_APPLICATION = 'y2local.wsgi.application'

DATABASES = {}

APPEND_SLASH = False

USE_TZ = True

# Server
Y2LOCAL_PORT = int(os.environ.get('PORT', '3000'))
Y2LOCAL_HOST = os.environ.get('Y2LOCAL_HOST', '0.0.0.0')

# External tools
Y2LOCAL_YTDLP_BINARY = os.environ.get('Y2LOCAL_YTDLP_BINARY', 'yt-dlp')
Y2LOCAL_FFMPEG_LOCATION = os.environ.get('Y2LOCAL_FFMPEG_LOCATION') or shutil.which('ffmpeg')

# Streaming and timeouts
Y2LOCAL_CHUNK_SIZE = int(os.environ.get('Y2LOCAL_CHUNK_SIZE', str(64 * 1024)))
Y2LOCAL_METADATA_TIMEOUT = int(os.environ.get('Y2LOCAL_METADATA_TIMEOUT', '120'))

# Check format_id against the catalog before /download-friendly starts streaming
Y2LOCAL_VERIFY_FORMAT_ID = _env_bool('Y2LOCAL_VERIFY_FORMAT_ID', False)

# Forward yt-dlp stderr to the server's stderr
Y2LOCAL_LOG_TOOL_OUTPUT = _env_bool('Y2LOCAL_LOG_TOOL_OUTPUT', True)
