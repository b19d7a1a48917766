"""
Download selection policies.

Maps a client's choice (or the best available pair) to the yt-dlp format
spec, response content type and attachment filename.
"""

from dataclasses import dataclass

from proxy.service.download import MERGE_SEPARATOR, join_format_ids
from proxy.service.exceptions import InputError, SelectionError
from proxy.service.formats import OPTION_AUDIO_ONLY


@dataclass(frozen=True)
class DownloadTarget:
    """What to ask yt-dlp for and how to label the response"""

    format_spec: str
    content_type: str
    filename: str


def friendly_target(download_type, format_id):
    """
    Describe a download of one option picked from /options.

    The format_id is passed through as-is; yt-dlp rejects unknown ids.

    Args:
        download_type: 'progressive' or 'audio-only'
        format_id: Format id chosen by the client

    Returns:
        DownloadTarget
    """
    if download_type == OPTION_AUDIO_ONLY:
        return DownloadTarget(
            format_spec=format_id,
            content_type='audio/m4a',
            filename='audio.m4a',
        )
    return DownloadTarget(
        format_spec=format_id,
        content_type='video/mp4',
        filename='video.mp4',
    )


def select_best(media_info):
    """
    Pick the best video-only and audio-only pair.

    Returns:
        BestSelection with both formats present

    Raises:
        SelectionError: If either a video-only or an audio-only format is missing
    """
    selection = media_info.to_best()
    if not selection.is_complete:
        raise SelectionError('no audio or video available')
    return selection


def best_target(media_info):
    """
    Describe a merged download of the best video and audio formats.

    Raises:
        SelectionError: If either a video-only or an audio-only format is missing
    """
    selection = select_best(media_info)
    return DownloadTarget(
        format_spec=join_format_ids(
            selection.best_video.format_id, selection.best_audio.format_id
        ),
        content_type='video/mp4',
        filename='video_best.mp4',
    )


def verify_format_spec(media_info, format_spec):
    """
    Check that every format id in a spec exists in the catalog.

    Raises:
        InputError: Naming the first unknown format id
    """
    for format_id in format_spec.split(MERGE_SEPARATOR):
        if media_info.get_format(format_id) is None:
            raise InputError(f'Unknown format_id: {format_id}')
