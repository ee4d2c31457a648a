from datetime import datetime, timezone

import httpx
import pytest

from onlyone.domain.trending.sources import (
    GithubSource,
    GoogleTrendsSource,
    RedditSource,
    SourceUnavailable,
    parse_traffic,
    shorten,
)

RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:ht="https://trends.google.com/trending/rss">
  <channel>
    <title>Daily Search Trends</title>
    <item>
      <title>solar eclipse</title>
      <ht:approx_traffic>200,000+</ht:approx_traffic>
    </item>
    <item>
      <title>world cup draw</title>
      <ht:approx_traffic>50K+</ht:approx_traffic>
    </item>
    <item>
      <title></title>
    </item>
  </channel>
</rss>
"""


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_reddit_keeps_popular_safe_posts():
    seen_agents = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen_agents.append(request.headers["user-agent"])
        children = [
            {"data": {"title": "Scientists map the deep ocean floor", "ups": 12000, "over_18": False}},
            {"data": {"title": "Barely noticed", "ups": 40, "over_18": False}},
            {"data": {"title": "Hidden", "ups": 9000, "over_18": True}},
        ]
        return httpx.Response(200, json={"data": {"children": children}})

    async with _client(handler) as http:
        items = await RedditSource(http=http, user_agent="tests/1.0").fetch()

    assert seen_agents == ["tests/1.0"]
    assert len(items) == 1
    assert items[0].content == 'Reading about "Scientists map the deep ocean floor" on Reddit'
    assert items[0].estimated_count == 1_200_000
    assert items[0].source == "reddit"


@pytest.mark.asyncio
async def test_reddit_error_status_is_source_unavailable():
    async with _client(lambda request: httpx.Response(429)) as http:
        with pytest.raises(SourceUnavailable) as excinfo:
            await RedditSource(http=http, user_agent="tests/1.0").fetch()
    assert excinfo.value.source == "reddit"


@pytest.mark.asyncio
async def test_reddit_unexpected_payload():
    async with _client(lambda request: httpx.Response(200, json={"kind": "Listing"})) as http:
        with pytest.raises(SourceUnavailable):
            await RedditSource(http=http, user_agent="tests/1.0").fetch()


@pytest.mark.asyncio
async def test_github_repositories_with_token():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["auth"] = request.headers.get("authorization")
        captured["sort"] = request.url.params.get("sort")
        repos = [
            {"full_name": "octo/telescope", "stargazers_count": 5400},
            {"full_name": "tiny/tool", "stargazers_count": 12},
        ]
        return httpx.Response(200, json={"items": repos})

    async with _client(handler) as http:
        items = await GithubSource(http=http, user_agent="tests/1.0", token="abc").fetch()

    assert captured == {"auth": "Bearer abc", "sort": "updated"}
    assert [item.content for item in items] == [
        "Checking out octo/telescope on GitHub",
        "Checking out tiny/tool on GitHub",
    ]
    assert [item.estimated_count for item in items] == [54000, 1000]


@pytest.mark.asyncio
async def test_google_trends_rss():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params.get("geo") == "CA"
        return httpx.Response(200, text=RSS)

    async with _client(handler) as http:
        items = await GoogleTrendsSource(http=http, user_agent="tests/1.0", geo="CA").fetch()

    assert [item.content for item in items] == ['Searching for "solar eclipse"', 'Searching for "world cup draw"']
    assert [item.estimated_count for item in items] == [200000, 50]


@pytest.mark.asyncio
async def test_google_trends_rejects_invalid_feed():
    async with _client(lambda request: httpx.Response(200, text="<rss><channel>")) as http:
        with pytest.raises(SourceUnavailable):
            await GoogleTrendsSource(http=http, user_agent="tests/1.0").fetch()


@pytest.mark.asyncio
async def test_google_trends_empty_feed_is_unavailable():
    empty = '<rss version="2.0"><channel><title>none</title></channel></rss>'
    async with _client(lambda request: httpx.Response(200, text=empty)) as http:
        with pytest.raises(SourceUnavailable):
            await GoogleTrendsSource(http=http, user_agent="tests/1.0").fetch()


def test_parse_traffic():
    assert parse_traffic("1,000,000+") == 1_000_000
    assert parse_traffic(None) == 1000
    assert parse_traffic("lots") == 1000


def test_shorten_collapses_whitespace_and_truncates():
    assert shorten("  a   b  ") == "a b"
    long_title = "word " * 30
    short = shorten(long_title)
    assert len(short) <= 60
    assert short.endswith("...")


@pytest.mark.asyncio
async def test_github_query_tracks_the_current_date():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["q"] = request.url.params.get("q")
        return httpx.Response(200, json={"items": []})

    fixed = datetime(2026, 3, 15, 9, 30, tzinfo=timezone.utc)
    async with _client(handler) as http:
        await GithubSource(http=http, user_agent="tests/1.0", clock=lambda: fixed).fetch()

    assert captured["q"] == "stars:>1000 pushed:>=2026-02-13"
