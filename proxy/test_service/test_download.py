"""
Tests for service/download.py
"""

import io
import signal
from unittest.mock import MagicMock, patch

from django.test import SimpleTestCase, override_settings

from proxy.service.download import (
    DownloadStream,
    build_download_command,
    join_format_ids,
    open_download,
)
from proxy.service.exceptions import ExternalToolError


def fake_process(stdout=b'', stderr=b'', returncode=0, running=False):
    """Popen stand-in whose pipes are in-memory buffers"""
    process = MagicMock()
    process.stdout = io.BytesIO(stdout)
    process.stderr = io.BytesIO(stderr)
    process.wait.return_value = returncode
    process.poll.return_value = None if running else returncode
    return process


@override_settings(Y2LOCAL_YTDLP_BINARY='yt-dlp', Y2LOCAL_FFMPEG_LOCATION='/usr/bin/ffmpeg')
class BuildDownloadCommandTest(SimpleTestCase):
    """Tests for yt-dlp download command construction"""

    def test_single_format(self):
        cmd = build_download_command('https://example.com/v', '18')
        self.assertEqual(cmd, [
            'yt-dlp',
            '-f', '18',
            '--no-warnings',
            '--no-check-certificates',
            '--ffmpeg-location', '/usr/bin/ffmpeg',
            '-o', '-',
            '--', 'https://example.com/v',
        ])

    def test_merge_adds_output_format(self):
        cmd = build_download_command('https://example.com/v', join_format_ids('137', '140'))
        self.assertIn('137+140', cmd)
        idx = cmd.index('--merge-output-format')
        self.assertEqual(cmd[idx + 1], 'mp4')

    def test_stdout_is_output(self):
        cmd = build_download_command('https://example.com/v', '18')
        idx = cmd.index('-o')
        self.assertEqual(cmd[idx + 1], '-')

    @override_settings(Y2LOCAL_FFMPEG_LOCATION=None)
    def test_no_ffmpeg_location(self):
        cmd = build_download_command('https://example.com/v', '137+140')
        self.assertNotIn('--ffmpeg-location', cmd)

    def test_join_format_ids(self):
        self.assertEqual(join_format_ids('248', '251'), '248+251')


@override_settings(Y2LOCAL_CHUNK_SIZE=4)
class DownloadStreamTest(SimpleTestCase):
    """Tests for streaming yt-dlp output"""

    @patch('proxy.service.download.subprocess.Popen')
    def test_streams_in_chunks(self, mock_popen):
        mock_popen.return_value = fake_process(stdout=b'abcdefghij')

        stream = open_download('https://example.com/v', '18')

        self.assertEqual(list(stream), [b'abcd', b'efgh', b'ij'])
        self.assertEqual(stream.bytes_sent, 10)

    @patch('proxy.service.download.os.killpg')
    @patch('proxy.service.download.subprocess.Popen')
    def test_reads_only_when_consumer_pulls(self, mock_popen, mock_killpg):
        process = fake_process(stdout=b'abcdefghijkl', running=True)
        mock_popen.return_value = process

        stream = open_download('https://example.com/v', '18')
        iterator = iter(stream)
        first = next(iterator)

        self.assertEqual(first, b'abcd')
        # Only the primed chunk has been read from the pipe
        self.assertEqual(process.stdout.tell(), 4)

        self.assertEqual(next(iterator), b'efgh')
        self.assertEqual(process.stdout.tell(), 8)
        iterator.close()

    @patch('proxy.service.download.subprocess.Popen')
    def test_failure_before_data_raises(self, mock_popen):
        process = fake_process(stderr=b'ERROR: Requested format is not available\n', returncode=1)
        mock_popen.return_value = process
        logs = []

        with self.assertRaises(ExternalToolError) as ctx:
            open_download('https://example.com/v', '999', logger=logs.append)

        self.assertEqual(str(ctx.exception), 'download failed')
        self.assertIn('ERROR: Requested format is not available', logs)
        process.kill.assert_not_called()
        self.assertTrue(process.stdout.closed)

    @patch('proxy.service.download.subprocess.Popen')
    def test_failure_after_data_truncates(self, mock_popen):
        mock_popen.return_value = fake_process(stdout=b'abcdef', returncode=1)
        logs = []

        stream = open_download('https://example.com/v', '18', logger=logs.append)
        data = b''.join(stream)

        self.assertEqual(data, b'abcdef')
        self.assertTrue(any('truncated' in message for message in logs))

    @patch('proxy.service.download.subprocess.Popen')
    def test_empty_success(self, mock_popen):
        mock_popen.return_value = fake_process(stdout=b'', returncode=0)

        stream = open_download('https://example.com/v', '18')

        self.assertEqual(list(stream), [])

    @patch('proxy.service.download.subprocess.Popen')
    def test_launch_failure(self, mock_popen):
        mock_popen.side_effect = FileNotFoundError('yt-dlp')

        with self.assertRaises(ExternalToolError) as ctx:
            open_download('https://example.com/v', '18')

        self.assertEqual(str(ctx.exception), 'could not start tool')

    @patch('proxy.service.download.os.killpg')
    @patch('proxy.service.download.subprocess.Popen')
    def test_close_kills_running_process(self, mock_popen, mock_killpg):
        process = fake_process(stdout=b'abcdefgh', running=True)
        mock_popen.return_value = process

        stream = open_download('https://example.com/v', '18')
        iterator = iter(stream)
        next(iterator)
        # Client went away mid-stream
        iterator.close()

        mock_killpg.assert_called_once_with(process.pid, signal.SIGKILL)
        process.wait.assert_called()
        self.assertTrue(process.stdout.closed)
        self.assertTrue(process.stderr.closed)

    @patch('proxy.service.download.subprocess.Popen')
    def test_runs_in_own_session(self, mock_popen):
        mock_popen.return_value = fake_process(stdout=b'abcd')

        list(open_download('https://example.com/v', '137+140'))

        self.assertTrue(mock_popen.call_args.kwargs['start_new_session'])

    @patch('proxy.service.download.os.killpg')
    def test_kill_falls_back_when_group_is_gone(self, mock_killpg):
        mock_killpg.side_effect = ProcessLookupError()
        process = fake_process(stdout=b'abcd', running=True)
        stream = DownloadStream(process, chunk_size=4, process_group=True)

        stream.close()

        process.kill.assert_called_once()

    def test_returncode_recorded(self):
        process = fake_process(stdout=b'abcdef', returncode=1)
        stream = DownloadStream(process, chunk_size=4)
        self.assertIsNone(stream.returncode)

        stream.prime()
        list(stream)

        self.assertEqual(stream.returncode, 1)

    def test_close_is_idempotent(self):
        process = fake_process(stdout=b'abc', running=True)
        stream = DownloadStream(process, chunk_size=4)

        stream.close()
        stream.close()

        process.kill.assert_called_once()
        self.assertEqual(list(stream), [])

    def test_stderr_drained_to_logger(self):
        process = fake_process(stdout=b'data', stderr=b'[download] 10%\n[download] 100%\n')
        logs = []
        stream = DownloadStream(process, logger=logs.append, chunk_size=4)

        stream.prime()
        list(stream)

        self.assertIn('[download] 10%', logs)
        self.assertIn('[download] 100%', logs)
