"""Tracked timezones and their local "today" boundaries."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from zoneinfo import ZoneInfo


@dataclass(frozen=True, slots=True)
class TrackedZone:
	name: str
	label: str
	emoji: str

	def local(self, now: datetime) -> datetime:
		return now.astimezone(ZoneInfo(self.name))

	def midnight_utc(self, now: datetime) -> datetime:
		"""Start of the local calendar day containing ``now``, as a UTC instant."""
		local = self.local(now)
		return local.replace(hour=0, minute=0, second=0, microsecond=0).astimezone(timezone.utc)

	def offset_minutes(self, now: datetime) -> int:
		offset = self.local(now).utcoffset()
		return int(offset.total_seconds() // 60) if offset is not None else 0


TRACKED_ZONES: tuple[TrackedZone, ...] = (
	TrackedZone("America/New_York", "NYC", "🗽"),
	TrackedZone("America/Los_Angeles", "LA", "🌴"),
	TrackedZone("Europe/London", "London", "🇬🇧"),
	TrackedZone("Europe/Paris", "Paris", "🇫🇷"),
	TrackedZone("Asia/Tokyo", "Tokyo", "🇯🇵"),
	TrackedZone("Asia/Dubai", "Dubai", "🇦🇪"),
	TrackedZone("Australia/Sydney", "Sydney", "🇦🇺"),
	TrackedZone("Asia/Kolkata", "India", "🇮🇳"),
)
