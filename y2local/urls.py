"""
URL configuration for y2local project.

Four read endpoints plus two download endpoints, all driven by query-string
parameters. No trailing slashes, matching the paths clients already call.
"""

from django.urls import path

from proxy.views import (
    best_view,
    download_best_view,
    download_friendly_view,
    info_view,
    options_view,
)

urlpatterns = [
    path('info', info_view, name='info'),
    path('options', options_view, name='options'),
    path('best', best_view, name='best'),
    path('download-friendly', download_friendly_view, name='download_friendly'),
    path('download-best', download_best_view, name='download_best'),
]
