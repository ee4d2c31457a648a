import uuid

import pytest

from onlyone.settings import settings

ACTION = "played cricket this evening"


async def _post(api_client, content=ACTION, ip="10.0.0.1", **extra):
	body = {"content": content, **extra}
	return await api_client.post("/posts", json=body, headers={"X-Forwarded-For": ip})


@pytest.mark.asyncio
async def test_first_post_is_unique(api_client):
	response = await _post(api_client)
	assert response.status_code == 201
	assert response.headers["X-Request-Id"]
	assert response.headers["X-RateLimit-Limit"] == str(settings.rate_limit_post_limit)
	payload = response.json()
	assert payload["matchCount"] == 0
	assert payload["uniquenessScore"] == 100
	assert payload["similarPosts"] == []
	assert payload["percentile"]["tier"] == "elite"
	assert payload["percentile"]["comparison"] == "Only you out of 1 person"
	post = payload["post"]
	assert post["content"] == ACTION
	assert post["inputType"] == "action"
	assert post["scope"] == "world"
	assert post["reactions"] == {"funny": 0, "creative": 0, "must_try": 0, "total": 0}
	assert uuid.UUID(post["id"])


@pytest.mark.asyncio
async def test_repeated_action_loses_uniqueness(api_client):
	for index in range(10):
		response = await _post(api_client, ip=f"10.0.1.{index}")
		assert response.status_code == 201

	response = await _post(api_client, ip="10.0.2.1")
	assert response.status_code == 201
	payload = response.json()
	assert payload["matchCount"] == 10
	assert payload["uniquenessScore"] == 2
	assert len(payload["similarPosts"]) == 10
	assert payload["post"]["id"] not in {post["id"] for post in payload["similarPosts"]}


@pytest.mark.asyncio
async def test_matching_ignores_case_and_punctuation(api_client):
	await _post(api_client, content="Played cricket this evening!", ip="10.0.3.1")
	response = await _post(api_client, content="played   cricket this evening", ip="10.0.3.2")
	assert response.json()["matchCount"] == 1


@pytest.mark.asyncio
async def test_post_rate_limit(api_client):
	for _ in range(settings.rate_limit_post_limit):
		response = await _post(api_client, ip="10.0.4.1")
		assert response.status_code == 201
	response = await _post(api_client, ip="10.0.4.1")
	assert response.status_code == 429
	assert int(response.headers["Retry-After"]) > 0
	payload = response.json()
	assert payload["limit"] == settings.rate_limit_post_limit
	assert payload["remaining"] == 0
	assert payload["resetSeconds"] > 0
	assert payload["request_id"]

	other = await _post(api_client, ip="10.0.4.2")
	assert other.status_code == 201


@pytest.mark.asyncio
async def test_oversized_payload(api_client, monkeypatch):
	monkeypatch.setattr(settings, "max_payload_bytes", 1024)
	body = '{"content": "' + "a" * 2048 + '"}'
	response = await api_client.post("/posts", content=body, headers={"Content-Type": "application/json"})
	assert response.status_code == 413
	assert "1KB" in response.json()["error"]


@pytest.mark.asyncio
async def test_invalid_json(api_client):
	response = await api_client.post("/posts", content="{not json", headers={"Content-Type": "application/json"})
	assert response.status_code == 400
	assert response.json()["error"] == "Invalid JSON in request body"


@pytest.mark.asyncio
async def test_injection_rejected_with_generic_message(api_client):
	response = await _post(api_client, content="<script>alert('x')</script> went running")
	assert response.status_code == 400
	assert "script" not in response.json()["error"].lower()


@pytest.mark.asyncio
async def test_quality_rejection(api_client, memory_store):
	response = await _post(api_client, content="asdfghjkl qwerty")
	assert response.status_code == 400
	payload = response.json()
	assert payload["error"] == "Content quality check failed"
	assert payload["reason"]
	assert isinstance(payload["qualityScore"], int)
	assert payload["suggestion"]
	assert memory_store.posts == []


@pytest.mark.asyncio
async def test_moderation_rejection(api_client, memory_store):
	response = await _post(api_client, content="called my mom at 555-123-4567 tonight")
	assert response.status_code == 400
	payload = response.json()
	assert payload["moderationFailed"] is True
	assert payload["blockedBy"] == "static"
	assert payload["severity"] == "high"
	assert memory_store.posts == []


@pytest.mark.asyncio
async def test_feed_lists_newest_first_without_ghosts(api_client):
	await _post(api_client, content="baked sourdough bread today", ip="10.0.5.1")
	await _post(api_client, content="painted the garden fence blue", ip="10.0.5.2")

	response = await api_client.get("/posts", params={"ghosts": "false"})
	assert response.status_code == 200
	payload = response.json()
	assert payload["total"] == 2
	assert [post["content"] for post in payload["posts"]] == ["painted the garden fence blue", "baked sourdough bread today"]
	assert all(not post["isGhost"] for post in payload["posts"])


@pytest.mark.asyncio
async def test_feed_filters_by_score(api_client):
	for index in range(3):
		await _post(api_client, ip=f"10.0.6.{index}")
	await _post(api_client, content="repaired an old bicycle wheel", ip="10.0.6.9")

	unique = (await api_client.get("/posts", params={"filter": "unique"})).json()
	common = (await api_client.get("/posts", params={"filter": "common"})).json()
	assert [post["content"] for post in unique["posts"]] == ["repaired an old bicycle wheel", ACTION]
	assert all(post["uniquenessScore"] < 70 for post in common["posts"])
	assert common["total"] == 2
	assert not any(post["isGhost"] for post in unique["posts"] + common["posts"])


@pytest.mark.asyncio
async def test_feed_scoped_to_city(api_client):
	await _post(api_client, content="swam in the lake at sunrise", ip="10.0.7.1", scope="city", locationCity="Austin", locationState="Texas")
	await _post(api_client, content="climbed a granite boulder", ip="10.0.7.2", scope="city", locationCity="Denver", locationState="Colorado")

	response = await api_client.get("/posts", params={"scope": "city", "locationCity": "Austin", "ghosts": "false"})
	assert [post["content"] for post in response.json()["posts"]] == ["swam in the lake at sunrise"]


@pytest.mark.asyncio
async def test_sparse_feed_is_backfilled_with_ghosts(api_client):
	await _post(api_client)
	response = await api_client.get("/posts")
	posts = response.json()["posts"]
	ghosts = [post for post in posts if post["isGhost"]]
	assert 15 <= len(ghosts) <= 20
	assert all(post["id"].startswith("ghost-") and post["reactable"] is False for post in ghosts)
	assert len(posts) - len(ghosts) == 1

	second_page = (await api_client.get("/posts", params={"offset": 20})).json()
	assert second_page["posts"] == []


@pytest.mark.asyncio
async def test_feed_rejects_bad_query(api_client):
	response = await api_client.get("/posts", params={"limit": 500})
	assert response.status_code == 400
	assert response.json()["error"] == "Invalid request"


@pytest.mark.asyncio
async def test_detail_not_found(api_client):
	for post_id in ("not-a-uuid", str(uuid.uuid4()), "ghost-1700000000000-3"):
		response = await api_client.get(f"/posts/{post_id}")
		assert response.status_code == 404
		assert response.json()["error"] == "Post not found"


@pytest.mark.asyncio
async def test_detail_recomputes_live_score(api_client):
	created = (await _post(api_client, ip="10.0.8.1")).json()
	await _post(api_client, ip="10.0.8.2")
	await _post(api_client, content="repaired an old bicycle wheel", ip="10.0.8.3")

	response = await api_client.get(f"/posts/{created['post']['id']}")
	assert response.status_code == 200
	payload = response.json()
	assert payload["live"] is True
	assert payload["post"]["matchCount"] == 1
	assert payload["post"]["uniquenessScore"] < created["uniquenessScore"]
	assert payload["dailyRank"] == 1
	assert payload["temporal"]["today"]["matchCount"] == 1
	assert payload["temporal"]["allTime"]["totalPosts"] == 3
	assert payload["temporal"]["trend"] in {"rising", "flat", "falling"}


@pytest.mark.asyncio
async def test_oversized_chunked_body_is_cut_off(api_client, monkeypatch, memory_store):
	monkeypatch.setattr(settings, "max_payload_bytes", 1024)
	sent = []

	async def chunks():
		yield b'{"content": "'
		for _ in range(50):
			sent.append(1)
			yield b"a" * 256
		yield b'"}'

	response = await api_client.post("/posts", content=chunks(), headers={"Content-Type": "application/json"})
	assert response.status_code == 413
	assert "1KB" in response.json()["error"]
	assert memory_store.posts == []
	assert len(sent) < 50


@pytest.mark.asyncio
async def test_declared_length_over_limit_is_rejected(api_client, monkeypatch):
	monkeypatch.setattr(settings, "max_payload_bytes", 1024)
	response = await api_client.post(
		"/posts",
		content=b'{"content": "baked bread"}',
		headers={"Content-Type": "application/json", "Content-Length": "999999"},
	)
	assert response.status_code == 413


@pytest.mark.asyncio
async def test_simple_past_action_is_posted(api_client):
	response = await _post(api_client, content="played cricket today", ip="10.0.9.1")
	assert response.status_code == 201
	assert response.json()["post"]["vibe"] == "Fitness Warrior"


@pytest.mark.asyncio
async def test_imperative_is_rejected(api_client, memory_store):
	response = await _post(api_client, content="Drink more water every day", ip="10.0.9.2")
	assert response.status_code == 400
	assert response.json()["error"] == "Content quality check failed"
	assert memory_store.posts == []


@pytest.mark.asyncio
async def test_day_summaries_match_on_shared_activities(api_client):
	first = await _post(api_client, content="made coffee, walked the dog, and read a book", ip="10.0.10.1", inputType="day_summary")
	assert first.status_code == 201
	assert first.json()["matchCount"] == 0
	assert first.json()["post"]["vibe"] == "Bookworm"

	second = await _post(api_client, content="walked my dog, made coffee and went to the gym", ip="10.0.10.2", inputType="day_summary")
	payload = second.json()
	assert payload["matchCount"] == 1
	assert [post["id"] for post in payload["similarPosts"]] == [first.json()["post"]["id"]]

	third = await _post(api_client, content="painted a mural, fixed the sink and called my sister", ip="10.0.10.3", inputType="day_summary")
	assert third.json()["matchCount"] == 0

	detail = (await api_client.get(f"/posts/{first.json()['post']['id']}")).json()
	assert detail["post"]["matchCount"] == 1
