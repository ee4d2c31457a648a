"""Pydantic schemas for platform statistics."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class PlatformStatsSchema(BaseModel):
	today_total: int = Field(alias="todayTotal")
	today_unique: int = Field(alias="todayUnique")
	all_time_total: int = Field(alias="allTimeTotal")
	blocked_count: int = Field(alias="blockedCount")

	model_config = {"populate_by_name": True}


class RankingRowSchema(BaseModel):
	rank: int = Field(..., ge=1)
	content_hash: str = Field(alias="contentHash")
	content: Optional[str] = None
	count: int

	model_config = {"populate_by_name": True}


class RankingsResponse(BaseModel):
	ymd: int
	items: list[RankingRowSchema]


class TimezoneActivitySchema(BaseModel):
	timezone: str
	label: str
	emoji: str
	utc_offset_minutes: int = Field(alias="utcOffsetMinutes")
	posts_today: int = Field(alias="postsToday")
	local_time: str = Field(alias="localTime")

	model_config = {"populate_by_name": True}


class TimezoneStatsResponse(BaseModel):
	timezones: list[TimezoneActivitySchema]
	most_active: Optional[TimezoneActivitySchema] = Field(default=None, alias="mostActive")
	total_global: int = Field(alias="totalGlobal")

	model_config = {"populate_by_name": True}
