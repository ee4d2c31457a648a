import pytest

from onlyone.settings import settings


async def _post(api_client, content, ip):
	return await api_client.post("/posts", json={"content": content}, headers={"X-Forwarded-For": ip})


@pytest.mark.asyncio
async def test_platform_stats(api_client):
	await _post(api_client, "played cricket this evening", "10.1.0.1")
	await _post(api_client, "played cricket this evening", "10.1.0.2")
	await _post(api_client, "knitted a scarf for winter", "10.1.0.3")
	await _post(api_client, "texted 555-123-4567 about tickets", "10.1.0.4")

	response = await api_client.get("/stats")
	assert response.status_code == 200
	payload = response.json()
	assert payload["todayTotal"] == 3
	assert payload["allTimeTotal"] == 3
	assert payload["todayUnique"] == 2
	assert payload["blockedCount"] == 1


@pytest.mark.asyncio
async def test_daily_rankings(api_client):
	for index in range(3):
		await _post(api_client, "played cricket this evening", f"10.2.0.{index}")
	await _post(api_client, "knitted a scarf for winter", "10.2.1.1")

	response = await api_client.get("/stats/rankings", params={"limit": 5})
	assert response.status_code == 200
	payload = response.json()
	assert len(str(payload["ymd"])) == 8
	assert [(row["rank"], row["content"], row["count"]) for row in payload["items"]] == [
		(1, "played cricket this evening", 3),
		(2, "knitted a scarf for winter", 1),
	]


@pytest.mark.asyncio
async def test_moderation_stats_and_reset(api_client, monkeypatch):
	monkeypatch.setattr(settings, "cron_secret", None)
	await _post(api_client, "cooked dinner for my family", "10.3.0.1")
	await _post(api_client, "texted 555-123-4567 about tickets", "10.3.0.2")

	stats = (await api_client.get("/moderation/stats")).json()
	assert stats["total"] == 2
	assert stats["staticBlocked"] == 1
	assert stats["allowed"] == 1
	assert stats["blockRate"] == 50.0

	reset = await api_client.delete("/moderation/stats")
	assert reset.json() == {"success": True}
	assert (await api_client.get("/moderation/stats")).json()["total"] == 0


@pytest.mark.asyncio
async def test_moderation_reset_requires_secret(api_client, monkeypatch):
	monkeypatch.setattr(settings, "cron_secret", "s3cret")
	response = await api_client.delete("/moderation/stats")
	assert response.status_code == 401


@pytest.mark.asyncio
async def test_timezone_stats(api_client):
	await _post(api_client, "played cricket this evening", "10.1.9.1")
	response = await api_client.get("/stats/timezones")
	assert response.status_code == 200
	payload = response.json()
	assert len(payload["timezones"]) == 8
	assert payload["totalGlobal"] == 1
	assert payload["mostActive"]["postsToday"] == 1
	assert {"timezone", "label", "emoji", "utcOffsetMinutes", "postsToday", "localTime"} <= set(payload["timezones"][0])
