"""
HTTP endpoints for the download proxy.

Every endpoint takes query-string parameters. Failures before a download
body starts are answered with ``{"error": ...}`` JSON; once bytes are
flowing a failure can only cut the body short.
"""

from django.http import HttpResponse, JsonResponse, StreamingHttpResponse
from django.views.decorators.http import require_GET

from proxy.service.config import get_tool_logger, should_verify_format_id
from proxy.service.download import open_download
from proxy.service.exceptions import InputError, ProxyError
from proxy.service.extract import fetch_media_info, fetch_metadata
from proxy.service.formats import classify
from proxy.service.selection import (
    best_target,
    friendly_target,
    select_best,
    verify_format_spec,
)


def _error_response(error):
    return JsonResponse({'error': str(error)}, status=error.status_code)


def _require_url(request):
    url = request.GET.get('url')
    if not url:
        raise InputError('Missing required parameter: url')
    return url


def _stream_response(url, target, logger):
    """Start yt-dlp and wrap its output in an attachment response."""
    stream = open_download(url, target.format_spec, logger=logger)
    response = StreamingHttpResponse(stream, content_type=target.content_type)
    response['Content-Disposition'] = f'attachment; filename="{target.filename}"'
    response['Cache-Control'] = 'no-store'
    response['X-Accel-Buffering'] = 'no'
    return response


@require_GET
def info_view(request):
    """
    Raw metadata for a URL.

    Params:
        url (required): Video page URL

    Returns:
        The JSON document printed by ``yt-dlp -J``, unchanged
    """
    try:
        url = _require_url(request)
        raw = fetch_metadata(url, logger=get_tool_logger())
        # Reject non-JSON output before passing it on verbatim
        classify(raw)
    except ProxyError as e:
        return _error_response(e)

    return HttpResponse(raw, content_type='application/json')


@require_GET
def options_view(request):
    """
    Download options for a URL: progressive formats and audio-only formats.

    Params:
        url (required): Video page URL
    """
    try:
        url = _require_url(request)
        media_info = fetch_media_info(url, logger=get_tool_logger())
    except ProxyError as e:
        return _error_response(e)

    options = media_info.to_options()
    return JsonResponse({
        'title': media_info.title,
        'duration': media_info.duration,
        'uploader': media_info.uploader,
        'options': {
            'progressive': [o.to_dict() for o in options['progressive']],
            'audioOnly': [o.to_dict() for o in options['audioOnly']],
        },
    })


@require_GET
def best_view(request):
    """
    Best video-only and audio-only formats for a URL.

    Params:
        url (required): Video page URL
    """
    try:
        url = _require_url(request)
        media_info = fetch_media_info(url, logger=get_tool_logger())
        selection = select_best(media_info)
    except ProxyError as e:
        return _error_response(e)

    return JsonResponse({'title': media_info.title, **selection.to_dict()})


@require_GET
def download_friendly_view(request):
    """
    Stream one option picked from /options.

    Params:
        url (required): Video page URL
        type (required): 'progressive' or 'audio-only'
        format_id (required): Format id from /options
    """
    url = request.GET.get('url')
    download_type = request.GET.get('type')
    format_id = request.GET.get('format_id')
    if not url or not download_type or not format_id:
        return _error_response(InputError('Missing required parameters: url, type, format_id'))

    logger = get_tool_logger()
    target = friendly_target(download_type, format_id)
    try:
        if should_verify_format_id():
            verify_format_spec(fetch_media_info(url, logger=logger), target.format_spec)
        return _stream_response(url, target, logger)
    except ProxyError as e:
        return _error_response(e)


@require_GET
def download_best_view(request):
    """
    Stream the best video merged with the best audio as MP4.

    Params:
        url (required): Video page URL
    """
    logger = get_tool_logger()
    try:
        url = _require_url(request)
        media_info = fetch_media_info(url, logger=logger)
        target = best_target(media_info)
        return _stream_response(url, target, logger)
    except ProxyError as e:
        return _error_response(e)
