"""
Metadata extraction via the yt-dlp command line tool.

Runs ``yt-dlp -J`` for a URL and returns its JSON output untouched.
"""

import subprocess

from proxy.service.config import get_metadata_timeout, get_ytdlp_binary
from proxy.service.exceptions import ExternalToolError
from proxy.service.formats import classify


def build_metadata_command(url):
    """
    Build the yt-dlp command that dumps a single JSON document for a URL.

    Args:
        url: Source URL

    Returns:
        list[str]
    """
    return [
        get_ytdlp_binary(),
        '-J',
        '--no-warnings',
        '--no-check-certificates',
        '--',
        url,
    ]


def fetch_metadata(url, logger=None):
    """
    Fetch raw metadata JSON for a URL.

    Args:
        url: Source URL (non-empty, checked by the caller)
        logger: Optional callable(str) for yt-dlp diagnostic output

    Returns:
        str: Everything yt-dlp wrote to stdout

    Raises:
        ExternalToolError: If yt-dlp cannot be started, times out, or fails
    """
    def log(message):
        if logger:
            logger(message)

    cmd = build_metadata_command(url)
    log(f"Running: {' '.join(cmd)}")

    try:
        result = subprocess.run(
            cmd,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            timeout=get_metadata_timeout(),
        )
    except subprocess.TimeoutExpired as e:
        # subprocess.run kills and reaps the child before re-raising
        raise ExternalToolError('metadata fetch timed out') from e
    except OSError as e:
        log(f"Could not start {cmd[0]}: {e}")
        raise ExternalToolError('could not start tool') from e

    for line in (result.stderr or b'').decode('utf-8', errors='replace').splitlines():
        log(line)

    if result.returncode != 0:
        log(f"{cmd[0]} exited with code {result.returncode}")
        raise ExternalToolError('metadata fetch failed')

    return (result.stdout or b'').decode('utf-8', errors='replace')


def fetch_media_info(url, logger=None):
    """
    Fetch and classify metadata for a URL.

    Returns:
        MediaInfo

    Raises:
        ExternalToolError: If yt-dlp fails
        ParseError: If yt-dlp output is not a JSON object
    """
    return classify(fetch_metadata(url, logger=logger))
