"""
Tests for service/config.py
"""

from unittest.mock import patch

from django.test import SimpleTestCase, override_settings

from proxy.service.config import (
    get_chunk_size,
    get_ffmpeg_location,
    get_merge_output_format,
    get_metadata_timeout,
    get_tool_logger,
    get_ytdlp_binary,
    should_verify_format_id,
)


class ConfigServiceTest(SimpleTestCase):
    """Tests for configuration adapter"""

    @override_settings(Y2LOCAL_YTDLP_BINARY='/usr/local/bin/yt-dlp')
    def test_get_ytdlp_binary(self):
        self.assertEqual(get_ytdlp_binary(), '/usr/local/bin/yt-dlp')

    @override_settings(Y2LOCAL_FFMPEG_LOCATION='')
    def test_empty_ffmpeg_location_is_none(self):
        self.assertIsNone(get_ffmpeg_location())

    @override_settings(Y2LOCAL_FFMPEG_LOCATION='/opt/ffmpeg/bin')
    def test_get_ffmpeg_location(self):
        self.assertEqual(get_ffmpeg_location(), '/opt/ffmpeg/bin')

    def test_defaults(self):
        self.assertEqual(get_chunk_size(), 64 * 1024)
        self.assertEqual(get_metadata_timeout(), 120)
        self.assertEqual(get_merge_output_format(), 'mp4')
        self.assertFalse(should_verify_format_id())

    @override_settings(Y2LOCAL_LOG_TOOL_OUTPUT=False)
    def test_tool_logger_disabled(self):
        self.assertIsNone(get_tool_logger())

    @override_settings(Y2LOCAL_LOG_TOOL_OUTPUT=True)
    @patch('builtins.print')
    def test_tool_logger_prints_to_stderr(self, mock_print):
        logger = get_tool_logger()
        logger('ERROR: Video unavailable')

        args, kwargs = mock_print.call_args
        self.assertEqual(args[0], '[yt-dlp] ERROR: Video unavailable')
        self.assertIn('file', kwargs)
