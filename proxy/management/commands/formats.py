"""
Django management command for listing download options.

Prints the progressive and audio-only options for a URL, or the best
video/audio pair with --best. Uses the same service layer as the HTTP API.
"""

import json

from django.core.management.base import BaseCommand, CommandError

from proxy.service.exceptions import ProxyError
from proxy.service.extract import fetch_media_info
from proxy.service.selection import select_best


class Command(BaseCommand):
    help = 'List download options for a URL'

    def add_arguments(self, parser):
        parser.add_argument('url', type=str, help='Video page URL')
        parser.add_argument(
            '--best',
            action='store_true',
            help='Show the best video-only and audio-only formats instead',
        )
        parser.add_argument('--json', action='store_true', help='Output result as JSON')
        parser.add_argument('--verbose', action='store_true', help='Show yt-dlp output')

    def handle(self, *args, **options):
        url = options['url']
        logger = self.stderr.write if options['verbose'] else None

        try:
            media_info = fetch_media_info(url, logger=logger)
            selection = select_best(media_info) if options['best'] else None
        except ProxyError as e:
            raise CommandError(str(e))

        if selection is not None:
            self._show_best(media_info, selection, options['json'])
        else:
            self._show_options(media_info, options['json'])

    def _show_options(self, media_info, output_json):
        options = media_info.to_options()
        if output_json:
            result = {
                'title': media_info.title,
                'duration': media_info.duration,
                'uploader': media_info.uploader,
                'options': {
                    'progressive': [o.to_dict() for o in options['progressive']],
                    'audioOnly': [o.to_dict() for o in options['audioOnly']],
                },
            }
            self.stdout.write(json.dumps(result, indent=2))
            return

        self.stdout.write(f'Title: {media_info.title}')
        if media_info.uploader:
            self.stdout.write(f'Uploader: {media_info.uploader}')
        if media_info.duration:
            mins = int(media_info.duration) // 60
            secs = int(media_info.duration) % 60
            self.stdout.write(f'Duration: {mins}:{secs:02d}')

        self.stdout.write(f"\nProgressive ({len(options['progressive'])}):")
        for option in options['progressive']:
            self.stdout.write(f'  {str(option.format_id):>8}  {option.label or "?":<10} {option.ext}')

        self.stdout.write(f"\nAudio only ({len(options['audioOnly'])}):")
        for option in options['audioOnly']:
            bitrate = f'{option.bitrate}k' if option.bitrate else '?'
            self.stdout.write(f'  {str(option.format_id):>8}  {bitrate:<10} {option.ext}')

    def _show_best(self, media_info, selection, output_json):
        if output_json:
            self.stdout.write(json.dumps({'title': media_info.title, **selection.to_dict()}, indent=2))
            return

        video = selection.best_video
        audio = selection.best_audio
        self.stdout.write(f'Title: {media_info.title}')
        self.stdout.write(
            f'Best video: {video.format_id} ({video.quality_label or video.height or "?"}, {video.ext})'
        )
        self.stdout.write(f'Best audio: {audio.format_id} ({audio.bitrate or "?"}k, {audio.ext})')
        self.stdout.write(self.style.SUCCESS(f'Format spec: {video.format_id}+{audio.format_id}'))
