"""
Web search API route.
"""
from fastapi import APIRouter

from api.models.requests import WebSearchRequest
from api.models.responses import WebSearchResponse
from services.search.web_search import search_web, search_web_with_content

router = APIRouter()


@router.post("/search", response_model=WebSearchResponse)
def search(request: WebSearchRequest):
    """DuckDuckGo search, optionally with extracted page text for each hit."""
    if request.include_content:
        result = search_web_with_content(request.query, min(request.max_results, 3))
    else:
        result = search_web(request.query, request.max_results)
    return WebSearchResponse.model_validate(result)
