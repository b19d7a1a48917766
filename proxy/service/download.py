"""
Streaming downloads via the yt-dlp command line tool.

yt-dlp writes the selected rendition (or the ffmpeg merge of a video and
an audio format) to stdout; DownloadStream hands those bytes to the caller
one chunk at a time so the child only runs as fast as the client reads.
"""

import os
import signal
import subprocess
import threading

from proxy.service.config import (
    get_chunk_size,
    get_ffmpeg_location,
    get_merge_output_format,
    get_ytdlp_binary,
)
from proxy.service.exceptions import ExternalToolError

MERGE_SEPARATOR = '+'

# yt-dlp runs in its own session so a kill also reaches the ffmpeg it spawns
USE_PROCESS_GROUP = hasattr(os, 'killpg')


def join_format_ids(video_format_id, audio_format_id):
    """Build a yt-dlp format spec that merges a video and an audio format"""
    return f'{video_format_id}{MERGE_SEPARATOR}{audio_format_id}'


def is_merge_spec(format_spec):
    return MERGE_SEPARATOR in format_spec


def build_download_command(url, format_spec):
    """
    Build the yt-dlp command that streams a format spec to stdout.

    Args:
        url: Source URL
        format_spec: A single format_id, or two joined with '+'

    Returns:
        list[str]
    """
    cmd = [
        get_ytdlp_binary(),
        '-f', format_spec,
        '--no-warnings',
        '--no-check-certificates',
    ]

    ffmpeg_location = get_ffmpeg_location()
    if ffmpeg_location:
        cmd.extend(['--ffmpeg-location', ffmpeg_location])

    if is_merge_spec(format_spec):
        cmd.extend(['--merge-output-format', get_merge_output_format()])

    cmd.extend(['-o', '-', '--', url])
    return cmd


class DownloadStream:
    """
    Iterable over the stdout of a running yt-dlp download.

    The child is reaped and its pipes are closed by close(), which runs when
    iteration ends and again (as a no-op) when Django closes the response.
    A client disconnect closes the response early and kills the child.

    returncode holds yt-dlp's exit status once the child has been reaped,
    so callers that can still report failure (the CLI) can tell a complete
    download from a truncated one.
    """

    def __init__(self, process, logger=None, chunk_size=None, process_group=False):
        self.process = process
        self.chunk_size = chunk_size or get_chunk_size()
        self.bytes_sent = 0
        self.returncode = None
        self._logger = logger
        self._process_group = process_group
        self._first_chunk = b''
        self._closed = False
        self._stderr_thread = threading.Thread(target=self._drain_stderr, daemon=True)
        self._stderr_thread.start()

    def log(self, message):
        if self._logger:
            self._logger(message)

    def _drain_stderr(self):
        stderr = self.process.stderr
        if stderr is None:
            return
        try:
            for raw_line in iter(stderr.readline, b''):
                self.log(raw_line.decode('utf-8', errors='replace').rstrip())
        except (OSError, ValueError):
            # Pipe closed underneath us during shutdown
            return

    def _read_chunk(self):
        return self.process.stdout.read1(self.chunk_size)

    def _kill(self):
        if self._process_group:
            try:
                os.killpg(self.process.pid, signal.SIGKILL)
                return
            except ProcessLookupError:
                pass
        self.process.kill()

    def prime(self):
        """
        Wait for the first chunk of output.

        Raises:
            ExternalToolError: If yt-dlp exits with a failure before writing anything
        """
        chunk = self._read_chunk()
        if chunk:
            self._first_chunk = chunk
            return

        self.returncode = self.process.wait()
        if self.returncode != 0:
            self.log(f'yt-dlp exited with code {self.returncode} before sending any data')
            self.close()
            raise ExternalToolError('download failed')

    def __iter__(self):
        if self._closed:
            return
        try:
            if self._first_chunk:
                chunk, self._first_chunk = self._first_chunk, b''
                self.bytes_sent += len(chunk)
                yield chunk

            while True:
                chunk = self._read_chunk()
                if not chunk:
                    break
                self.bytes_sent += len(chunk)
                yield chunk

            self.returncode = self.process.wait()
            if self.returncode != 0:
                # Headers are already out; all we can do is end the body early
                self.log(
                    f'yt-dlp exited with code {self.returncode} after {self.bytes_sent} bytes, '
                    'response truncated'
                )
        finally:
            self.close()

    def close(self):
        """Stop the child (and any ffmpeg it started) and release its pipes."""
        if self._closed:
            return
        self._closed = True

        if self.process.poll() is None:
            self.log(f'Stopping yt-dlp after {self.bytes_sent} bytes')
            self._kill()
        self.returncode = self.process.wait()

        if self.process.stdout:
            self.process.stdout.close()
        self._stderr_thread.join(timeout=5)
        if self.process.stderr:
            self.process.stderr.close()


def open_download(url, format_spec, logger=None):
    """
    Start a yt-dlp download and wait for its first bytes.

    Args:
        url: Source URL
        format_spec: A single format_id, or two joined with '+'
        logger: Optional callable(str) for yt-dlp diagnostic output

    Returns:
        DownloadStream ready to iterate

    Raises:
        ExternalToolError: If yt-dlp cannot be started or fails before sending data
    """
    def log(message):
        if logger:
            logger(message)

    cmd = build_download_command(url, format_spec)
    log(f"Running: {' '.join(cmd)}")

    try:
        process = subprocess.Popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            start_new_session=USE_PROCESS_GROUP,
        )
    except OSError as e:
        log(f"Could not start {cmd[0]}: {e}")
        raise ExternalToolError('could not start tool') from e

    stream = DownloadStream(process, logger=logger, process_group=USE_PROCESS_GROUP)
    try:
        stream.prime()
    except BaseException:
        stream.close()
        raise
    return stream
