"""
Video analysis pipeline: URL to stored, summarized video.
"""
import logging
from typing import Optional

from core.exceptions import InvalidInputError, NotFoundError
from core.storage import Storage
from models.video_models import Video
from services.analysis.summarizer import Summarizer, summarizer
from services.ingestion.youtube_fetcher import (
    YouTubeFetcher,
    extract_video_id,
    format_transcript,
    youtube_fetcher,
)

logger = logging.getLogger(__name__)


class VideoAnalysisPipeline:
    """Orchestrates fetching, summarizing and storing a video."""

    def __init__(
        self,
        fetcher: Optional[YouTubeFetcher] = None,
        video_summarizer: Optional[Summarizer] = None,
    ):
        self.fetcher = fetcher or youtube_fetcher
        self.summarizer = video_summarizer or summarizer

    def analyze(self, url: str, user_id: Optional[str], storage: Storage) -> Video:
        """
        Analyze a video URL for a user.

        Stages:
        1. Extract the video ID
        2. Reuse the user's existing analysis if there is one
        3. Fetch metadata and transcript
        4. Summarize with the active summary config, if any
        5. Store the video

        Raises:
            InvalidInputError: missing or unrecognised URL
            VideoFetchError: metadata lookup failed
            GenerationError: summary generation failed
        """
        if not url or not url.strip():
            raise InvalidInputError("YouTube URL is required")

        youtube_id = extract_video_id(url)
        if not youtube_id:
            raise InvalidInputError("Invalid YouTube URL")

        existing = storage.get_user_video(user_id, youtube_id)
        if existing:
            logger.info(f"Returning existing analysis of {youtube_id} for user {user_id}")
            return existing

        info = self.fetcher.fetch_video_info(youtube_id)
        summary = self.summarizer.summarize_video(
            format_transcript(info.transcript, info.transcript_data),
            info.title,
            info.duration,
            storage.get_active_prompt_config("summary"),
        )

        video = storage.create_video(Video(
            youtube_id=youtube_id,
            user_id=user_id,
            title=info.title,
            channel=info.channel,
            duration=info.duration,
            views=info.views,
            thumbnail=info.thumbnail,
            transcript=info.transcript,
            transcript_data=info.transcript_data,
            summary=summary,
        ))
        logger.info(f"Analyzed video {youtube_id} as {video.id}")
        return video

    def reanalyze(self, youtube_id: str, user_id: str, storage: Storage) -> Video:
        """
        Regenerate the summary of a video the user already analyzed.

        Raises:
            InvalidInputError: missing video ID
            NotFoundError: the user has no analysis of this video
        """
        if not youtube_id:
            raise InvalidInputError("YouTube ID is required")

        existing = storage.get_user_video(user_id, youtube_id)
        if not existing:
            raise NotFoundError("Video not found")

        summary = self.summarizer.summarize_video(
            format_transcript(existing.transcript, existing.transcript_data),
            existing.title,
            existing.duration,
            storage.get_active_prompt_config("summary"),
        )
        updated = storage.update_video_summary(existing.id, summary)
        if not updated:
            raise NotFoundError("Video not found")
        logger.info(f"Re-analyzed video {youtube_id} ({existing.id})")
        return updated


# Global pipeline instance
pipeline = VideoAnalysisPipeline()
