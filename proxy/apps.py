from django.apps import AppConfig


class ProxyConfig(AppConfig):
    name = 'proxy'
    verbose_name = 'yt-dlp download proxy'
