"""Integration tests for the audit log endpoints."""


class TestAuditRouter:
    async def test_events_recorded_for_mutations(self, client, staff_headers):
        created = (await client.post(
            "/clients", json={"client_ref_1": "ABC123"}, headers=staff_headers["dave"],
        )).json()
        await client.delete(f"/clients/{created['id']}", headers=staff_headers["dave"])

        resp = await client.get(
            f"/audit?resource_type=client&resource_id={created['id']}",
            headers=staff_headers["alice"],
        )
        assert resp.status_code == 200
        actions = sorted(e["action"] for e in resp.json())
        assert actions == ["CREATE", "DEACTIVATE"]

    async def test_login_events(self, client, staff_headers):
        resp = await client.get("/audit?action=LOGIN", headers=staff_headers["alice"])
        assert resp.status_code == 200
        assert len(resp.json()) == 4

    async def test_recent_activity(self, client, staff_headers):
        resp = await client.get("/audit/recent", headers=staff_headers["dave"])
        assert resp.status_code == 200
        assert 0 < len(resp.json()) <= 10

    async def test_requires_session(self, client):
        resp = await client.get("/audit", headers={"X-Scholarfund-Session": "bogus"})
        assert resp.status_code == 401
