"""External trend sources.

Each source turns one upstream feed into humanized ``TrendingItem`` sentences
and raises ``SourceUnavailable`` on any transport or shape problem.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional, Protocol

import httpx

from onlyone.domain.trending.models import TrendingItem
from onlyone.errors import DependencyDegraded

_MAX_TITLE = 60
_TRAFFIC_RE = re.compile(r"[\d,]+")
_GOOGLE_TRENDS_NS = {"ht": "https://trends.google.com/trending/rss"}


def _utcnow() -> datetime:
	return datetime.now(timezone.utc)


class SourceUnavailable(DependencyDegraded):
	def __init__(self, source: str, detail: str) -> None:
		super().__init__(f"trending:{source}", detail)
		self.source = source


class TrendSource(Protocol):
	name: str

	async def fetch(self) -> list[TrendingItem]:
		...


def shorten(title: str, limit: int = _MAX_TITLE) -> str:
	title = " ".join(title.split())
	if len(title) <= limit:
		return title
	return title[: limit - 3].rstrip() + "..."


async def _get(http: httpx.AsyncClient, source: str, url: str, **kwargs: Any) -> httpx.Response:
	try:
		response = await http.get(url, **kwargs)
		response.raise_for_status()
	except httpx.HTTPError as exc:
		raise SourceUnavailable(source, str(exc) or exc.__class__.__name__) from exc
	return response


@dataclass
class RedditSource:
	"""Hot posts across the social-link aggregator."""

	http: httpx.AsyncClient
	user_agent: str
	url: str = "https://www.reddit.com/r/all/hot.json?limit=50"
	min_upvotes: int = 500
	max_items: int = 30
	name: str = "reddit"

	async def fetch(self) -> list[TrendingItem]:
		response = await _get(self.http, self.name, self.url, headers={"User-Agent": self.user_agent})
		try:
			children = response.json()["data"]["children"]
			items: list[TrendingItem] = []
			for child in children:
				data = child["data"]
				ups = int(data.get("ups", 0))
				if ups <= self.min_upvotes or data.get("over_18"):
					continue
				items.append(
					TrendingItem(
						content=f'Reading about "{shorten(str(data["title"]))}" on Reddit',
						estimated_count=ups * 100,
						source=self.name,
					)
				)
		except (KeyError, TypeError, ValueError) as exc:
			raise SourceUnavailable(self.name, "unexpected payload") from exc
		return items[: self.max_items]


@dataclass
class GithubSource:
	"""Recently popular repositories from the developer-repository index."""

	http: httpx.AsyncClient
	user_agent: str
	token: Optional[str] = None
	url: str = "https://api.github.com/search/repositories"
	max_items: int = 20
	pushed_within_days: int = 30
	name: str = "github"
	clock: Callable[[], datetime] = _utcnow

	def query(self) -> str:
		since = (self.clock() - timedelta(days=self.pushed_within_days)).date()
		return f"stars:>1000 pushed:>={since.isoformat()}"

	async def fetch(self) -> list[TrendingItem]:
		headers = {"User-Agent": self.user_agent, "Accept": "application/vnd.github+json"}
		if self.token:
			headers["Authorization"] = f"Bearer {self.token}"
		params = {"q": self.query(), "sort": "updated", "order": "desc", "per_page": str(self.max_items)}
		response = await _get(self.http, self.name, self.url, headers=headers, params=params)
		try:
			repos = response.json()["items"]
			items = [
				TrendingItem(
					content=f'Checking out {shorten(str(repo["full_name"]))} on GitHub',
					estimated_count=max(1000, int(repo.get("stargazers_count", 0)) * 10),
					source=self.name,
				)
				for repo in repos
			]
		except (KeyError, TypeError, ValueError) as exc:
			raise SourceUnavailable(self.name, "unexpected payload") from exc
		return items[: self.max_items]


def parse_traffic(raw: Optional[str], default: int = 1000) -> int:
	if not raw:
		return default
	match = _TRAFFIC_RE.search(raw)
	if not match:
		return default
	digits = match.group(0).replace(",", "")
	return int(digits) if digits else default


@dataclass
class GoogleTrendsSource:
	"""Daily search trends published as RSS."""

	http: httpx.AsyncClient
	user_agent: str
	geo: str = "US"
	url: str = "https://trends.google.com/trending/rss"
	max_items: int = 10
	name: str = "google"

	async def fetch(self) -> list[TrendingItem]:
		response = await _get(self.http, self.name, self.url, params={"geo": self.geo}, headers={"User-Agent": self.user_agent})
		try:
			root = ET.fromstring(response.text)
		except ET.ParseError as exc:
			raise SourceUnavailable(self.name, "invalid feed") from exc
		items: list[TrendingItem] = []
		for entry in root.iter("item"):
			title = (entry.findtext("title") or "").strip()
			if not title:
				continue
			traffic = entry.findtext("ht:approx_traffic", namespaces=_GOOGLE_TRENDS_NS)
			items.append(
				TrendingItem(
					content=f'Searching for "{shorten(title)}"',
					estimated_count=parse_traffic(traffic),
					source=self.name,
				)
			)
		if not items:
			raise SourceUnavailable(self.name, "no trending searches")
		return items[: self.max_items]
