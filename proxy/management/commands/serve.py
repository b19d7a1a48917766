"""
Run the proxy with Django's development server on the configured port.

Same as ``runserver`` except the default address and port come from the
Y2LOCAL_HOST and PORT environment variables (0.0.0.0:3000 when unset).
"""

from django.conf import settings
from django.core.management.commands.runserver import Command as RunserverCommand


class Command(RunserverCommand):
    help = 'Start the download proxy on $Y2LOCAL_HOST:$PORT (default 0.0.0.0:3000)'

    default_addr = settings.Y2LOCAL_HOST
    default_port = str(settings.Y2LOCAL_PORT)
