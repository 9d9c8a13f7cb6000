"""
Literal web search using DuckDuckGo, with optional page text extraction.
"""
import logging
import re
import time
from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any

import requests
from bs4 import BeautifulSoup
from duckduckgo_search import DDGS

from core.config import WEB_SEARCH_TIMEOUT_SECONDS
from core.exceptions import WebSearchError

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; VidChat/1.0)"
MAX_CONTENT_CHARS = 2000


@dataclass
class SearchResult:
    """Represents a single web search hit."""
    title: str
    url: str
    snippet: str = ""
    published_date: Optional[str] = None
    content: Optional[str] = None


@dataclass
class WebSearchResponse:
    query: str
    results: List[SearchResult] = field(default_factory=list)
    search_timestamp: int = 0  # epoch milliseconds

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query": self.query,
            "searchTimestamp": self.search_timestamp,
            "results": [
                {
                    "title": r.title,
                    "url": r.url,
                    "snippet": r.snippet,
                    "publishedDate": r.published_date,
                    **({"content": r.content} if r.content is not None else {}),
                }
                for r in self.results
            ],
        }


def extract_content_from_url(url: str) -> str:
    """Fetch a page and return its first MAX_CONTENT_CHARS characters of visible text."""
    try:
        response = requests.get(
            url,
            headers={"User-Agent": USER_AGENT},
            timeout=WEB_SEARCH_TIMEOUT_SECONDS,
        )
        response.raise_for_status()

        soup = BeautifulSoup(response.content, "html.parser")
        for element in soup(["script", "style", "nav", "header", "footer", "aside"]):
            element.decompose()

        text = soup.get_text(separator=" ", strip=True)
        text = re.sub(r"\s+", " ", text).strip()
        return text[:MAX_CONTENT_CHARS]

    except Exception as e:
        logger.warning(f"Failed to extract content from {url}: {e}")
        return ""


def search_web(query: str, max_results: int = 5) -> WebSearchResponse:
    """
    Run a DuckDuckGo text search.

    Raises:
        WebSearchError: the search backend failed
    """
    results: List[SearchResult] = []

    try:
        with DDGS() as ddgs:
            for hit in ddgs.text(query, max_results=max_results) or []:
                url = hit.get("href", "")
                if not url:
                    continue
                results.append(SearchResult(
                    title=(hit.get("title") or "")[:100],
                    url=url,
                    snippet=hit.get("body", ""),
                ))
    except Exception as e:
        logger.error(f"Web search error for '{query}': {e}")
        raise WebSearchError(f"Failed to search the web: {e}") from e

    return WebSearchResponse(
        query=query,
        results=results[:max_results],
        search_timestamp=int(time.time() * 1000),
    )


def search_web_with_content(query: str, max_results: int = 3) -> WebSearchResponse:
    """Search, then attach extracted page text to each result."""
    response = search_web(query, max_results)
    for result in response.results:
        result.content = extract_content_from_url(result.url)
    return response
