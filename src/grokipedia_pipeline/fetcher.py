"""X Search Fetcher

Issues a single authenticated GET against the X v2 search API and returns
the parsed JSON document. Any transport failure or non-2xx status is fatal
for the run; retrying fetches is out of scope.
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from .errors import FetchError

logger = logging.getLogger(__name__)

APP_USER_AGENT = "grokipedia-x/0.1"
SEARCH_ALL_ENDPOINT = "https://api.x.com/2/tweets/search/all"
SEARCH_RECENT_ENDPOINT = "https://api.x.com/2/tweets/search/recent"
MAX_RESULTS = 100

_NEWS_SITES = (
    "(url:nytimes.com OR url:cnn.com OR url:bloomberg.com OR url:foxnews.com "
    "OR url:ndtv.com OR url:indiatimes.com OR url:channelnewsasia.com)"
)

# Named searches used by scheduled runs. Each maps to (endpoint, query, extra params).
QUERY_PRESETS: Dict[str, Dict[str, Any]] = {
    "crime": {"endpoint": SEARCH_ALL_ENDPOINT, "query": "crime"},
    "politics": {"endpoint": SEARCH_ALL_ENDPOINT, "query": "politics"},
    "sports": {
        "endpoint": SEARCH_RECENT_ENDPOINT,
        "query": (
            "(cricket OR basketball OR football OR soccer OR baseball OR athletics) "
            f"{_NEWS_SITES} has:links lang:en min_likes:10 -is:retweet -is:reply"
        ),
        "params": {"sort_order": "recency"},
    },
    "headlines": {
        "endpoint": SEARCH_RECENT_ENDPOINT,
        "query": (
            '(breaking OR "just in" OR announcement OR update OR "new report" '
            f'OR "major development") {_NEWS_SITES} has:links lang:en min_likes:100 '
            "-is:retweet -is:reply"
        ),
        "params": {"sort_order": "recency"},
    },
    "breaking": {
        "endpoint": SEARCH_RECENT_ENDPOINT,
        "query": (
            "breaking min_likes:10 min_reposts:200 is:verified -has:hashtags "
            "lang:en -has:links"
        ),
    },
    "viral": {
        "endpoint": SEARCH_RECENT_ENDPOINT,
        "query": (
            "breaking min_likes:10000 min_reposts:1000 is:verified -has:hashtags "
            "lang:en -has:links"
        ),
    },
    "announcements": {
        "endpoint": SEARCH_RECENT_ENDPOINT,
        "query": (
            "announcement min_likes:100 min_reposts:100 is:verified -has:hashtags "
            "lang:en has:links"
        ),
    },
}


def build_search_url(query: str, endpoint: str = SEARCH_ALL_ENDPOINT,
                     extra_params: Optional[Dict[str, str]] = None) -> str:
    """Build the search URL with a percent-encoded query."""
    url = f"{endpoint}?max_results={MAX_RESULTS}&query={quote(query, safe='')}"
    for key, value in (extra_params or {}).items():
        url += f"&{key}={quote(str(value), safe='')}"
    return url


def resolve_search_url(query: Optional[str] = None, preset: Optional[str] = None) -> str:
    """
    Resolve a free-text query or a named preset into a search URL.

    Raises:
        FetchError: If ``preset`` is not a known preset name
    """
    if preset:
        entry = QUERY_PRESETS.get(preset)
        if entry is None:
            raise FetchError(
                f"Unknown query preset: {preset!r} (known: {', '.join(sorted(QUERY_PRESETS))})"
            )
        return build_search_url(entry["query"], entry["endpoint"], entry.get("params"))
    return build_search_url(query or "government")


class XSearchFetcher:
    """Authenticated client for the X search endpoints."""

    def __init__(
        self,
        bearer_token: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not bearer_token:
            raise ValueError("X API bearer token is required.")
        self.bearer_token = bearer_token
        self.timeout = timeout
        self.transport = transport

    async def fetch(self, url: str) -> Any:
        """
        GET ``url`` and return the decoded JSON body.

        Raises:
            FetchError: On transport failure, non-2xx status, or a non-JSON body
        """
        headers = {
            "Authorization": f"Bearer {self.bearer_token}",
            "Accept": "application/json",
            "User-Agent": APP_USER_AGENT,
        }
        logger.debug("GET %s", url)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(url, headers=headers)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise FetchError(
                f"X search request failed with status {status}: {exc.response.text[:200]}",
                status_code=status,
            ) from exc
        except httpx.HTTPError as exc:
            raise FetchError(f"X search request failed: {exc}") from exc
        except ValueError as exc:
            raise FetchError(f"X search response is not valid JSON: {exc}") from exc

    async def search(self, query: Optional[str] = None, preset: Optional[str] = None) -> Any:
        return await self.fetch(resolve_search_url(query=query, preset=preset))
