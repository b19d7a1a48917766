"""
Configuration adapter for yt-dlp invocation settings.

Centralizes access to Django settings and environment variables,
ensuring consistent configuration across the CLI and the web app.
"""

import sys

from django.conf import settings


def get_ytdlp_binary():
    """Get the yt-dlp executable name or path"""
    return settings.Y2LOCAL_YTDLP_BINARY


def get_ffmpeg_location():
    """
    Get the ffmpeg location handed to yt-dlp for merging.

    Returns:
        str | None: Path to ffmpeg, or None to let yt-dlp search PATH
    """
    return settings.Y2LOCAL_FFMPEG_LOCATION or None


def get_chunk_size():
    """Get the read size used when streaming download output"""
    return settings.Y2LOCAL_CHUNK_SIZE


def get_metadata_timeout():
    """Get the maximum number of seconds a metadata fetch may run"""
    return settings.Y2LOCAL_METADATA_TIMEOUT


def get_merge_output_format():
    """Get the container used when yt-dlp merges video and audio"""
    return 'mp4'


def should_verify_format_id():
    """Whether downloads check format_id against the catalog first"""
    return settings.Y2LOCAL_VERIFY_FORMAT_ID


def get_tool_logger():
    """
    Get the log sink for yt-dlp diagnostic output.

    Returns:
        callable(str) | None: Writes to the server's stderr, or None when
        tool output logging is disabled
    """
    if not settings.Y2LOCAL_LOG_TOOL_OUTPUT:
        return None

    def logger(message):
        print(f'[yt-dlp] {message}', file=sys.stderr)

    return logger
