# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Integration tests for the request pipeline: headers, limits, content checks, scanning, and logs."""

from __future__ import annotations

from httpx import ASGITransport, AsyncClient

VALID_PAYLOAD = {
    "titulo": "Servidor Pro",
    "descripcion": "Servidor dedicado de alto rendimiento",
    "precio": 19990,
    "nucleos": 4,
    "ram": 8,
    "disco": 200,
    "cluster": "Cluster Norte",
}


def _client(app, base_url: str = "http://test") -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url=base_url)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class TestHealth:
    async def test_health_shape(self, client) -> None:
        resp = await client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["service"] == "servercat"
        assert data["uptime"] >= 0
        assert "timestamp" in data

    async def test_health_has_its_own_limit(self, client) -> None:
        for _ in range(10):
            assert (await client.get("/health")).status_code == 200

        resp = await client.get("/health")
        assert resp.status_code == 429
        body = resp.json()
        assert body["error"] == "RATE_LIMIT_EXCEEDED"
        assert 0 < body["retryAfter"] <= 60
        assert resp.headers["Retry-After"] == str(body["retryAfter"])

    async def test_health_not_counted_by_global_limit(self, make_app) -> None:
        app = make_app(rate_limit_max=1)
        async with _client(app) as client:
            for _ in range(3):
                assert (await client.get("/health")).status_code == 200
            assert "X-RateLimit-Limit" not in (await client.get("/health")).headers


# ---------------------------------------------------------------------------
# Response headers
# ---------------------------------------------------------------------------


class TestResponseHeaders:
    async def test_hardening_headers(self, client) -> None:
        resp = await client.get("/health")
        assert resp.headers["X-Frame-Options"] == "DENY"
        assert resp.headers["X-Content-Type-Options"] == "nosniff"
        assert resp.headers["X-XSS-Protection"] == "1; mode=block"
        assert resp.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"
        assert "frame-ancestors 'none'" in resp.headers["Content-Security-Policy"]
        assert "Strict-Transport-Security" not in resp.headers
        assert len(resp.headers["X-Request-ID"]) == 32

    async def test_catalog_responses_not_cacheable(self, client, auth_headers) -> None:
        resp = await client.get("/products", headers=auth_headers())
        assert resp.headers["Cache-Control"] == "no-store, no-cache, must-revalidate, private"
        assert resp.headers["Pragma"] == "no-cache"

        health = await client.get("/health")
        assert "Cache-Control" not in health.headers

    async def test_hsts_over_https(self, app) -> None:
        async with _client(app, "https://test") as client:
            resp = await client.get("/health")
        assert resp.headers["Strict-Transport-Security"].startswith("max-age=31536000")

    async def test_unknown_route(self, client) -> None:
        resp = await client.get("/nope")
        assert resp.status_code == 404
        assert resp.json() == {
            "error": "NOT_FOUND",
            "message": "The requested route does not exist",
            "path": "/nope",
        }

    async def test_cors_preflight(self, client) -> None:
        resp = await client.options(
            "/products",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Authorization, Content-Type",
            },
        )
        assert resp.status_code == 200
        assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:3000"
        assert resp.headers["Access-Control-Allow-Credentials"] == "true"
        assert resp.headers["Access-Control-Max-Age"] == "86400"


# ---------------------------------------------------------------------------
# Global rate limit
# ---------------------------------------------------------------------------


class TestGlobalRateLimit:
    async def test_headers_and_rejection(self, make_app, security_events) -> None:
        app = make_app(rate_limit_max=3)
        async with _client(app) as client:
            first = await client.get("/nope")
            assert first.headers["X-RateLimit-Limit"] == "3"
            assert first.headers["X-RateLimit-Remaining"] == "2"
            await client.get("/nope")
            await client.get("/nope")

            resp = await client.get("/nope")

        assert resp.status_code == 429
        assert resp.json()["error"] == "RATE_LIMIT_EXCEEDED"
        assert int(resp.headers["Retry-After"]) > 0
        assert resp.headers["X-RateLimit-Remaining"] == "0"
        assert any(e["event_type"] == "rate_limit_exceeded" for e in security_events())


# ---------------------------------------------------------------------------
# Content checks
# ---------------------------------------------------------------------------


class TestContentGuard:
    async def test_unsupported_media_type(self, client, auth_headers) -> None:
        headers = {**auth_headers(), "Content-Type": "text/plain"}
        resp = await client.post("/products", content=b"hello", headers=headers)
        assert resp.status_code == 415
        assert resp.json()["error"] == "UNSUPPORTED_MEDIA_TYPE"

    async def test_missing_content_type(self, client, auth_headers) -> None:
        resp = await client.post("/products", content=b"{}", headers=auth_headers())
        assert resp.status_code == 400
        assert resp.json()["error"] == "CONTENT_TYPE_REQUIRED"

    async def test_payload_too_large(self, make_app) -> None:
        app = make_app(max_body_bytes=64)
        async with _client(app) as client:
            token = app.state.services.issuer.issue("admin-1", "admin").token
            resp = await client.post(
                "/products", json=VALID_PAYLOAD, headers={"Authorization": f"Bearer {token}"}
            )
        assert resp.status_code == 413
        assert resp.json()["error"] == "PAYLOAD_TOO_LARGE"

    async def test_bodiless_login_passes(self, client) -> None:
        resp = await client.post("/login")
        assert resp.status_code == 200


# ---------------------------------------------------------------------------
# Threat scanning
# ---------------------------------------------------------------------------


class TestThreatScan:
    async def test_body_threat_rejected(self, client, auth_headers, security_events) -> None:
        payload = {**VALID_PAYLOAD, "titulo": "<script>alert(1)</script>"}
        resp = await client.post("/products", json=payload, headers=auth_headers())
        assert resp.status_code == 400
        assert resp.json()["error"] == "THREAT_DETECTED"

        events = [e for e in security_events() if e["event_type"] == "injection_attempt"]
        assert len(events) == 1
        assert events[0]["severity"] == "high"
        fields = {t["field"] for t in events[0]["context"]["threats"]}
        assert "body.titulo" in fields

    async def test_query_threat_rejected(self, client, auth_headers) -> None:
        resp = await client.get("/products", params={"search": "x' OR 1=1"}, headers=auth_headers())
        assert resp.status_code == 400
        assert resp.json()["error"] == "THREAT_DETECTED"

    async def test_header_threat_rejected(self, client) -> None:
        resp = await client.get("/health", headers={"Referer": "../../etc/passwd"})
        assert resp.status_code == 400

    async def test_rejected_body_never_reaches_catalog(self, client, app, auth_headers) -> None:
        payload = {**VALID_PAYLOAD, "descripcion": "DROP TABLE productos please"}
        await client.post("/products", json=payload, headers=auth_headers())
        products = await app.state.services.catalog.list_products()
        assert len(products) == 2


# ---------------------------------------------------------------------------
# Client agents
# ---------------------------------------------------------------------------


class TestSuspiciousAgents:
    async def test_flagged_but_allowed_by_default(self, client, auth_headers, security_events) -> None:
        headers = {**auth_headers(), "User-Agent": "sqlmap/1.7"}
        resp = await client.get("/products", headers=headers)
        assert resp.status_code == 200

        flagged = [e for e in security_events() if e["event_type"] == "suspicious_activity"]
        assert flagged[0]["context"]["reason"] == "suspicious_user_agent"

    async def test_blocked_when_enabled(self, make_app) -> None:
        app = make_app(block_suspicious_agents=True)
        async with _client(app) as client:
            resp = await client.get("/health", headers={"User-Agent": "Nikto/2.5"})
        assert resp.status_code == 403
        assert resp.json()["error"] == "FORBIDDEN"


# ---------------------------------------------------------------------------
# Security and audit logs
# ---------------------------------------------------------------------------


class TestSecurityLogging:
    async def test_login_success_logged(self, client, security_events) -> None:
        await client.post("/login")
        types = [e["event_type"] for e in security_events()]
        assert "auth_success" in types

    async def test_unauthorized_access_logged(self, client, security_events) -> None:
        await client.get("/products")
        events = security_events()
        failures = [e for e in events if e["event_type"] == "auth_failure"]
        assert failures[0]["context"]["reason"] == "MISSING_CREDENTIAL"
        unauthorized = [e for e in events if e["event_type"] == "unauthorized_access"]
        assert unauthorized[0]["context"]["status"] == 401

    async def test_data_access_audited(self, client, auth_headers, security_events) -> None:
        await client.get("/products", headers=auth_headers("user", "ana"))

        access = [e for e in security_events() if e["event_type"] == "data_access"]
        assert access[0]["context"]["userId"] == "ana"
        assert access[0]["context"]["action"] == "GET /products"

        audit = security_events("audit.log")
        assert len(audit) == 1
        assert audit[0]["context"]["user"] == {"id": "ana", "role": "user"}
        assert audit[0]["context"]["result"] == "success"

    async def test_denied_access_audited_as_failure(self, client, auth_headers, security_events) -> None:
        await client.delete("/products/1", headers=auth_headers("readonly", "rita"))
        audit = security_events("audit.log")
        assert audit[0]["context"]["result"] == "failure"

    async def test_burst_reported_as_anomaly(self, make_app, security_events) -> None:
        app = make_app(anomaly_burst_threshold=3)
        token = app.state.services.issuer.issue("busy", "readonly").token
        async with _client(app) as client:
            for _ in range(5):
                await client.get("/products", headers={"Authorization": f"Bearer {token}"})

        anomalies = [
            e for e in security_events()
            if e["event_type"] == "suspicious_activity" and e["context"].get("anomaly") == "high_frequency_actions"
        ]
        assert anomalies
        assert anomalies[0]["context"]["userId"] == "busy"


# ---------------------------------------------------------------------------
# Unhandled errors
# ---------------------------------------------------------------------------


async def _explode(**kwargs) -> list:
    raise RuntimeError("catalog offline")


class TestUnhandledErrors:
    async def test_development_exposes_detail(self, app, client, auth_headers, monkeypatch, security_events) -> None:
        monkeypatch.setattr(app.state.services.catalog, "list_products", _explode)
        resp = await client.get("/products", params={"search": "vps"}, headers=auth_headers())

        assert resp.status_code == 500
        body = resp.json()
        assert body["error"] == "INTERNAL_ERROR"
        assert body["message"] == "catalog offline"
        assert "RuntimeError" in body["stack"]

        errors = security_events("errors.log")
        assert errors[0]["context"]["error"]["name"] == "RuntimeError"
        assert errors[0]["context"]["context"]["query"] == {"search": "vps"}
        assert errors[0]["context"]["context"]["user"] == "admin-1"

    async def test_production_hides_detail(self, make_app, monkeypatch) -> None:
        app = make_app(environment="production")
        monkeypatch.setattr(app.state.services.catalog, "list_products", _explode)
        token = app.state.services.issuer.issue("admin-1", "admin").token
        async with _client(app) as client:
            resp = await client.get("/products", headers={"Authorization": f"Bearer {token}"})

        assert resp.status_code == 500
        assert resp.json() == {"error": "INTERNAL_ERROR", "message": "An unexpected error occurred"}
