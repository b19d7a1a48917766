"""
Format catalog parsing and classification.

Turns the JSON document printed by ``yt-dlp -J`` into a MediaInfo and
derives the views the endpoints return: progressive and audio-only
download options, and the best video-only/audio-only pair for merging.

Everything here is pure; no process is spawned.
"""

import json
import math
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from proxy.service.exceptions import ParseError

# yt-dlp reports a missing stream with this codec value
NO_CODEC = 'none'

OPTION_PROGRESSIVE = 'progressive'
OPTION_AUDIO_ONLY = 'audio-only'

_LEADING_INT = re.compile(r'\s*([+-]?\d+)')


def parse_label_number(label):
    """
    Parse the leading integer of a quality label.

    '1080p' -> 1080, '720p60' -> 720. Labels without a leading number
    (or no label at all) count as 0.

    Args:
        label: Quality label such as '720p', or None

    Returns:
        int
    """
    if not isinstance(label, str):
        return 0
    match = _LEADING_INT.match(label)
    if not match:
        return 0
    return int(match.group(1))


def as_number(value):
    """
    Coerce a sort key to a number, treating absent or non-numeric values as 0.
    """
    if value is None or isinstance(value, bool):
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if math.isnan(number):
        return 0
    return number


@dataclass(frozen=True)
class FormatEntry:
    """One rendition from the yt-dlp format list"""

    format_id: str
    vcodec: Optional[str] = None
    acodec: Optional[str] = None
    ext: Optional[str] = None
    quality_label: Optional[str] = None
    bitrate: Optional[float] = None
    height: Optional[int] = None

    @classmethod
    def from_dict(cls, data):
        """Build an entry from one element of the yt-dlp 'formats' array."""
        format_id = data.get('format_id')
        return cls(
            format_id=str(format_id) if format_id is not None else None,
            vcodec=data.get('vcodec'),
            acodec=data.get('acodec'),
            ext=data.get('ext'),
            quality_label=data.get('qualityLabel') or data.get('format_note'),
            bitrate=data.get('abr'),
            height=data.get('height'),
        )

    @property
    def has_video(self):
        return self.vcodec != NO_CODEC

    @property
    def has_audio(self):
        return self.acodec != NO_CODEC

    @property
    def is_progressive(self):
        return self.has_video and self.has_audio

    @property
    def is_video_only(self):
        return self.has_video and not self.has_audio

    @property
    def is_audio_only(self):
        return self.has_audio and not self.has_video


@dataclass(frozen=True)
class ClassifiedOption:
    """A downloadable option shown to clients"""

    type: str
    format_id: str
    ext: Optional[str] = None
    label: Optional[str] = None
    bitrate: Optional[float] = None

    @classmethod
    def progressive(cls, entry):
        return cls(
            type=OPTION_PROGRESSIVE,
            format_id=entry.format_id,
            ext=entry.ext,
            label=entry.quality_label,
        )

    @classmethod
    def audio_only(cls, entry):
        return cls(
            type=OPTION_AUDIO_ONLY,
            format_id=entry.format_id,
            ext=entry.ext,
            # A zero bitrate is reported as unknown
            bitrate=entry.bitrate or None,
        )

    def to_dict(self):
        if self.type == OPTION_PROGRESSIVE:
            return {
                'type': self.type,
                'label': self.label,
                'ext': self.ext,
                'format_id': self.format_id,
            }
        return {
            'type': self.type,
            'bitrate': self.bitrate,
            'ext': self.ext,
            'format_id': self.format_id,
        }


@dataclass(frozen=True)
class BestSelection:
    """Highest video-only and audio-only formats, either may be None"""

    best_video: Optional[FormatEntry] = None
    best_audio: Optional[FormatEntry] = None

    @property
    def is_complete(self):
        return self.best_video is not None and self.best_audio is not None

    def to_dict(self):
        video = self.best_video
        audio = self.best_audio
        return {
            'bestVideo': {
                'format_id': video.format_id,
                'quality': video.quality_label,
                'ext': video.ext,
            } if video else None,
            'bestAudio': {
                'format_id': audio.format_id,
                'bitrate': audio.bitrate,
                'ext': audio.ext,
            } if audio else None,
        }


@dataclass(frozen=True)
class MediaInfo:
    """Metadata for one URL as reported by yt-dlp"""

    title: Optional[str] = None
    duration: Optional[float] = None
    uploader: Optional[str] = None
    formats: Tuple[FormatEntry, ...] = field(default_factory=tuple)

    def progressive_options(self) -> List[ClassifiedOption]:
        options = [ClassifiedOption.progressive(f) for f in self.formats if f.is_progressive]
        # sorted() is stable, so equal labels keep catalog order
        return sorted(options, key=lambda o: parse_label_number(o.label), reverse=True)

    def audio_only_options(self) -> List[ClassifiedOption]:
        options = [ClassifiedOption.audio_only(f) for f in self.formats if f.is_audio_only]
        return sorted(options, key=lambda o: as_number(o.bitrate), reverse=True)

    def to_options(self):
        """
        Classify the catalog into download options.

        Returns:
            dict: {'progressive': [ClassifiedOption], 'audioOnly': [ClassifiedOption]}
        """
        return {
            'progressive': self.progressive_options(),
            'audioOnly': self.audio_only_options(),
        }

    def to_best(self) -> BestSelection:
        """
        Pick the tallest video-only format and the highest-bitrate audio-only format.

        Progressive formats are never candidates. Ties keep the first entry.
        """
        videos = sorted(
            (f for f in self.formats if f.is_video_only),
            key=lambda f: as_number(f.height),
            reverse=True,
        )
        audios = sorted(
            (f for f in self.formats if f.is_audio_only),
            key=lambda f: as_number(f.bitrate),
            reverse=True,
        )
        return BestSelection(
            best_video=videos[0] if videos else None,
            best_audio=audios[0] if audios else None,
        )

    def get_format(self, format_id):
        """Return the entry with the given format_id, or None"""
        for entry in self.formats:
            if entry.format_id == format_id:
                return entry
        return None


def classify(raw_json):
    """
    Parse yt-dlp ``-J`` output into a MediaInfo.

    Args:
        raw_json: Text printed by yt-dlp

    Returns:
        MediaInfo

    Raises:
        ParseError: If the text is not a JSON object
    """
    try:
        data = json.loads(raw_json)
    except (TypeError, ValueError) as e:
        raise ParseError('could not parse metadata') from e

    if not isinstance(data, dict):
        raise ParseError('could not parse metadata')

    raw_formats = data.get('formats')
    if not isinstance(raw_formats, list):
        raw_formats = []

    return MediaInfo(
        title=data.get('title'),
        duration=data.get('duration'),
        uploader=data.get('uploader'),
        formats=tuple(FormatEntry.from_dict(f) for f in raw_formats if isinstance(f, dict)),
    )
