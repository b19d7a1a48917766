"""
Django management command for downloading through yt-dlp.

Streams a chosen option (or the best video+audio merge) to a file, or to
stdout with ``--output -``. Same selection rules as the HTTP download
endpoints.
"""

import sys
from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from proxy.service.download import open_download
from proxy.service.exceptions import ProxyError
from proxy.service.extract import fetch_media_info
from proxy.service.formats import OPTION_AUDIO_ONLY, OPTION_PROGRESSIVE
from proxy.service.selection import best_target, friendly_target


class Command(BaseCommand):
    help = 'Download a format (or the best video+audio merge) for a URL'

    def add_arguments(self, parser):
        parser.add_argument('url', type=str, help='Video page URL')
        group = parser.add_mutually_exclusive_group(required=True)
        group.add_argument('--format-id', type=str, help='Format id from the formats command')
        group.add_argument(
            '--best', action='store_true', help='Merge the best video and audio formats'
        )
        parser.add_argument(
            '--type',
            type=str,
            default=OPTION_PROGRESSIVE,
            choices=[OPTION_PROGRESSIVE, OPTION_AUDIO_ONLY],
            help='Kind of option picked with --format-id (default: progressive)',
        )
        parser.add_argument(
            '--output',
            type=str,
            default=None,
            help="Output file, or '-' for stdout (default: audio.m4a / video.mp4 / video_best.mp4)",
        )
        parser.add_argument('--verbose', action='store_true', help='Show yt-dlp output')

    def handle(self, *args, **options):
        url = options['url']
        logger = self.stderr.write if options['verbose'] else None

        try:
            if options['best']:
                target = best_target(fetch_media_info(url, logger=logger))
            else:
                target = friendly_target(options['type'], options['format_id'])
            stream = open_download(url, target.format_spec, logger=logger)
        except ProxyError as e:
            raise CommandError(str(e))

        output = options['output'] or target.filename
        to_stdout = output == '-'
        out_path = None if to_stdout else Path(output)

        # yt-dlp is already running; it must be stopped however we leave here
        try:
            if to_stdout:
                self._copy(stream, sys.stdout.buffer)
            else:
                try:
                    out_path.parent.mkdir(parents=True, exist_ok=True)
                    with open(out_path, 'wb') as f:
                        self._copy(stream, f)
                except OSError as e:
                    raise CommandError(f'Could not write {out_path}: {e}')
        finally:
            stream.close()

        if stream.returncode != 0:
            if out_path is not None:
                out_path.unlink(missing_ok=True)
            raise CommandError(
                f'download failed: yt-dlp exited with code {stream.returncode} '
                f'after {stream.bytes_sent:,} bytes'
            )

        if out_path is not None:
            self.stderr.write(self.style.SUCCESS(f'✓ Saved {stream.bytes_sent:,} bytes to {out_path}'))

    def _copy(self, stream, out):
        for chunk in stream:
            out.write(chunk)
        out.flush()
