import pytest

from onlyone.infra import postgres


@pytest.mark.asyncio
async def test_liveness(api_client):
	response = await api_client.get("/health/live")
	assert response.status_code == 200
	assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_request_id_is_echoed(api_client):
	response = await api_client.get("/health/live", headers={"X-Request-Id": "req-123"})
	assert response.headers["X-Request-Id"] == "req-123"


@pytest.mark.asyncio
async def test_malformed_request_id_is_replaced(api_client):
	response = await api_client.get("/health/live", headers={"X-Request-Id": "bad id with spaces"})
	rid = response.headers["X-Request-Id"]
	assert rid != "bad id with spaces"
	assert len(rid) == 32


@pytest.mark.asyncio
async def test_metrics_exposition(api_client):
	await api_client.get("/health/live")
	response = await api_client.get("/metrics")
	assert response.status_code == 200
	assert "onlyone_http_requests_total" in response.text


@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(api_client):
	response = await api_client.get("/nope")
	assert response.status_code == 404
	payload = response.json()
	assert payload["error"] == "Not Found"
	assert payload["request_id"]


class _FakeConnection:
	def __init__(self, version):
		self.version = version

	async def execute(self, query):
		return "SELECT 1"

	async def fetchval(self, query):
		return self.version


class _FakePool:
	def __init__(self, version):
		self.connection = _FakeConnection(version)

	def acquire(self):
		pool = self

		class _Acquire:
			async def __aenter__(self):
				return pool.connection

			async def __aexit__(self, *exc):
				return False

		return _Acquire()


@pytest.mark.asyncio
async def test_readiness_with_store_and_cache(api_client, monkeypatch):
	async def _pool():
		return _FakePool("0001")

	monkeypatch.setattr(postgres, "get_pool", _pool)
	response = await api_client.get("/health/ready")
	assert response.status_code == 200
	payload = response.json()
	assert payload["status"] == "ok"
	assert payload["checks"]["store"]["migration"] == "0001"
	assert payload["checks"]["cache"]["ok"] is True


@pytest.mark.asyncio
async def test_readiness_fails_without_store(api_client, monkeypatch):
	async def _pool():
		raise ConnectionRefusedError("connection refused")

	monkeypatch.setattr(postgres, "get_pool", _pool)
	response = await api_client.get("/health/ready")
	assert response.status_code == 503
	payload = response.json()
	assert payload["status"] == "unavailable"
	assert payload["checks"]["store"]["ok"] is False


@pytest.mark.asyncio
async def test_readiness_degraded_without_migrations(api_client, monkeypatch):
	async def _pool():
		return _FakePool(None)

	monkeypatch.setattr(postgres, "get_pool", _pool)
	response = await api_client.get("/health/ready")
	assert response.status_code == 503
	assert response.json()["checks"]["store"]["error"] == "no_migrations"
