"""
YouTube metadata and transcript fetcher using the YouTube Data API,
youtube-transcript-api and yt-dlp.
"""
import logging
import re
from typing import List, Optional, Tuple

import requests
import yt_dlp
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from youtube_transcript_api import YouTubeTranscriptApi

from core.config import YOUTUBE_API_KEY, TRANSCRIPT_LANGUAGES
from core.exceptions import VideoFetchError
from models.video_models import TranscriptSegment, VideoInfo

logger = logging.getLogger(__name__)

NO_TRANSCRIPT_TEXT = "No transcript available for this video"

VIDEO_ID_PATTERNS = [
    re.compile(r'(?:youtube\.com\/watch\?v=|youtu\.be\/|youtube\.com\/embed\/|youtube\.com\/shorts\/)([a-zA-Z0-9_-]{11})'),
    re.compile(r'youtube\.com\/watch\?.*v=([a-zA-Z0-9_-]{11})'),
]
BARE_VIDEO_ID = re.compile(r'^[a-zA-Z0-9_-]{11}$')

ISO_DURATION = re.compile(r'PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?')

THUMBNAIL_PREFERENCE = ("maxres", "high", "medium", "default")


def extract_video_id(url: Optional[str]) -> Optional[str]:
    """Extract the video ID from a watch, short, embed or shorts URL. None when nothing matches."""
    if not url:
        return None
    url = url.strip()

    for pattern in VIDEO_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)

    if BARE_VIDEO_ID.match(url):
        return url
    return None


def _clock(hours: int, minutes: int, seconds: int) -> str:
    if hours > 0:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


def format_duration(iso_duration: Optional[str]) -> str:
    """ISO-8601 duration ("PT1H2M3S") to "1:02:03"; "PT4M5S" to "4:05"."""
    match = ISO_DURATION.search(iso_duration or "")
    if not match or not any(match.groups()):
        return "0:00"
    hours, minutes, seconds = (int(group or 0) for group in match.groups())
    return _clock(hours, minutes, seconds)


def format_view_count(count) -> str:
    """Abbreviate a raw view count: 999 -> "999 views", 12345 -> "12K views", 3.4M -> "3M views"."""
    try:
        num = int(count)
    except (TypeError, ValueError):
        num = 0
    if num >= 1_000_000:
        return f"{num // 1_000_000}M views"
    if num >= 1_000:
        return f"{num // 1_000}K views"
    return f"{num} views"


def format_timestamp(total_seconds: float) -> str:
    total = int(total_seconds)
    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes:02d}:{seconds:02d}"


def format_transcript(text: Optional[str], segments: Optional[List[TranscriptSegment]] = None) -> str:
    """Render timed segments as ``[MM:SS] text`` lines; plain text when there are none."""
    if segments:
        return "\n".join(f"[{seg.start_time_text}] {seg.text}" for seg in segments)
    return text or ""


def pick_thumbnail(thumbnails: dict) -> str:
    for size in THUMBNAIL_PREFERENCE:
        url = (thumbnails.get(size) or {}).get("url")
        if url:
            return url
    return ""


class YouTubeFetcher:
    """Fetches metadata and transcripts for YouTube videos."""

    def __init__(self, api_key: Optional[str] = YOUTUBE_API_KEY):
        self.api_key = api_key

    def fetch_video_info(self, video_id: str) -> VideoInfo:
        """
        Fetch metadata and transcript for a video.

        Raises:
            VideoFetchError: missing API key, API failure (500) or unknown video (404)
        """
        if not self.api_key:
            raise VideoFetchError("YouTube API key is not configured")

        try:
            youtube = build("youtube", "v3", developerKey=self.api_key, cache_discovery=False)
            response = youtube.videos().list(
                part="snippet,statistics,contentDetails",
                id=video_id,
            ).execute()
        except HttpError as e:
            logger.error(f"YouTube API error for {video_id}: {e}")
            raise VideoFetchError(f"Failed to fetch video information: {e.reason}") from e
        except Exception as e:
            logger.error(f"YouTube API request failed for {video_id}: {e}")
            raise VideoFetchError(f"Failed to fetch video information: {e}") from e

        items = response.get("items") or []
        if not items:
            raise VideoFetchError("Video not found", status_code=404)

        video = items[0]
        snippet = video.get("snippet", {})
        transcript, segments = self.get_transcript(video_id)

        return VideoInfo(
            youtube_id=video_id,
            title=snippet.get("title", "Untitled"),
            channel=snippet.get("channelTitle", "Unknown"),
            duration=format_duration(video.get("contentDetails", {}).get("duration")),
            views=format_view_count(video.get("statistics", {}).get("viewCount")),
            thumbnail=pick_thumbnail(snippet.get("thumbnails", {})),
            transcript=transcript,
            transcript_data=segments,
        )

    def get_transcript(self, video_id: str) -> Tuple[str, List[TranscriptSegment]]:
        """
        Get transcript text and timed segments for a video ID.

        Uses youtube-transcript-api first, falls back to yt-dlp subtitles
        (text only). Never raises; returns the placeholder text when nothing
        is available.
        """
        try:
            fetched = YouTubeTranscriptApi().fetch(video_id, languages=TRANSCRIPT_LANGUAGES)
            segments = [
                TranscriptSegment(
                    text=snippet.text,
                    start_ms=int(snippet.start * 1000),
                    end_ms=int((snippet.start + snippet.duration) * 1000),
                    start_time_text=format_timestamp(snippet.start),
                )
                for snippet in fetched
            ]
            text = " ".join(seg.text for seg in segments).strip()
            if text:
                return text, segments
        except Exception as e:
            logger.warning(f"youtube-transcript-api failed for {video_id}: {e}")

        text = self._get_subtitles_text(video_id)
        if text:
            return text, []

        logger.warning(f"No transcript available for {video_id}")
        return NO_TRANSCRIPT_TEXT, []

    def _get_subtitles_text(self, video_id: str) -> Optional[str]:
        try:
            url = f"https://www.youtube.com/watch?v={video_id}"
            ydl_opts = {
                'writesubtitles': True,
                'writeautomaticsub': True,
                'subtitleslangs': TRANSCRIPT_LANGUAGES,
                'skip_download': True,
                'quiet': True,
                'no_warnings': True,
            }

            with yt_dlp.YoutubeDL(ydl_opts) as ydl:
                info = ydl.extract_info(url, download=False)

            subtitles = info.get('subtitles') or {}
            auto_subtitles = info.get('automatic_captions') or {}

            for lang in TRANSCRIPT_LANGUAGES:
                # Prefer manual subtitles, fallback to auto
                captions = subtitles.get(lang) or auto_subtitles.get(lang) or []
                vtt = [c for c in captions if c.get('ext') == 'vtt'] or captions
                if vtt and vtt[0].get('url'):
                    response = requests.get(vtt[0]['url'], timeout=10)
                    response.raise_for_status()
                    return self._parse_subtitle_content(response.text) or None

        except Exception as e:
            logger.warning(f"yt-dlp subtitle lookup failed for {video_id}: {e}")

        return None

    @staticmethod
    def _parse_subtitle_content(content: str) -> str:
        """Parse WebVTT subtitle content into plain text."""
        transcript_lines = []
        previous = None

        for line in content.split('\n'):
            line = line.strip()
            if not line or '-->' in line or line.isdigit():
                continue
            if line.startswith(('WEBVTT', 'NOTE', 'STYLE', '::cue', 'Kind:', 'Language:')):
                continue

            line = re.sub(r'<[^>]+>', '', line)
            line = line.replace('&nbsp;', ' ').replace('&lt;', '<').replace('&gt;', '>').replace('&amp;', '&')
            line = line.strip()

            # Auto captions repeat each line across consecutive cues
            if line and line != previous:
                transcript_lines.append(line)
                previous = line

        return re.sub(r'\s+', ' ', ' '.join(transcript_lines)).strip()


# Global YouTube fetcher instance
youtube_fetcher = YouTubeFetcher()
