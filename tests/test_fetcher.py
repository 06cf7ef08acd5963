import asyncio

import httpx
import pytest

from src.grokipedia_pipeline.errors import FetchError
from src.grokipedia_pipeline.fetcher import (
    APP_USER_AGENT,
    QUERY_PRESETS,
    SEARCH_ALL_ENDPOINT,
    SEARCH_RECENT_ENDPOINT,
    XSearchFetcher,
    build_search_url,
    resolve_search_url,
)


def make_fetcher(handler):
    return XSearchFetcher("secret-token", transport=httpx.MockTransport(handler))


def test_search_sends_authenticated_json_request():
    """The search call carries the bearer token, JSON accept header and user agent."""
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"data": [{"id": "1", "text": "hello"}]})

    payload = asyncio.run(make_fetcher(handler).search(query="climate summit"))

    assert payload == {"data": [{"id": "1", "text": "hello"}]}
    request = seen[0]
    assert request.method == "GET"
    assert request.headers["Authorization"] == "Bearer secret-token"
    assert request.headers["Accept"] == "application/json"
    assert request.headers["User-Agent"] == APP_USER_AGENT
    assert str(request.url).startswith(SEARCH_ALL_ENDPOINT)
    assert request.url.params["query"] == "climate summit"
    assert request.url.params["max_results"] == "100"


def test_non_2xx_status_is_fetch_error_with_status_code():
    """A non-2xx reply becomes a FetchError that keeps the HTTP status."""
    def handler(request):
        return httpx.Response(401, json={"title": "Unauthorized"})

    with pytest.raises(FetchError) as excinfo:
        asyncio.run(make_fetcher(handler).search(query="x"))

    assert excinfo.value.status_code == 401
    assert "401" in str(excinfo.value)


def test_transport_failure_is_fetch_error():
    """Connection failures surface as FetchError, not raw httpx errors."""
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(FetchError, match="connection refused"):
        asyncio.run(make_fetcher(handler).search(query="x"))


def test_non_json_body_is_fetch_error():
    """A 200 reply that is not JSON is still a fetch failure."""
    def handler(request):
        return httpx.Response(200, text="<html>maintenance</html>")

    with pytest.raises(FetchError, match="not valid JSON"):
        asyncio.run(make_fetcher(handler).search(query="x"))


def test_build_search_url_encodes_query_operators():
    """Spaces, colons and minus signs in the query are percent-encoded."""
    url = build_search_url("breaking min_likes:10 -is:retweet")
    assert url == (
        f"{SEARCH_ALL_ENDPOINT}?max_results=100"
        "&query=breaking%20min_likes%3A10%20-is%3Aretweet"
    )


def test_resolve_preset_uses_recent_endpoint_and_extra_params():
    """A preset may target the recent-search endpoint with extra parameters."""
    url = resolve_search_url(preset="sports")
    assert url.startswith(SEARCH_RECENT_ENDPOINT)
    assert "sort_order=recency" in url
    assert "cricket" in url


def test_resolve_defaults_to_government_query():
    assert resolve_search_url() == build_search_url("government")


def test_unknown_preset_is_fetch_error():
    with pytest.raises(FetchError, match="Unknown query preset"):
        resolve_search_url(preset="weather")


def test_every_preset_resolves():
    for name in QUERY_PRESETS:
        assert "max_results=100" in resolve_search_url(preset=name)


def test_missing_bearer_token_rejected():
    with pytest.raises(ValueError):
        XSearchFetcher("")
