"""Integration tests for the maintenance sweep endpoints."""

from __future__ import annotations

from datetime import timedelta

MAINTENANCE_KEY = "integration-maintenance-key"
CONFIG = {"category": "animals"}


class TestMaintenanceAuth:
    def test_missing_key(self, anon_client):
        response = anon_client.post("/api/maintenance/expire-sweep")
        assert response.status_code == 401

    def test_wrong_key(self, anon_client):
        response = anon_client.post("/api/maintenance/expire-sweep", headers={"X-Maintenance-Key": "guess"})
        assert response.status_code == 401

    def test_player_session_is_not_enough(self, host_client):
        assert host_client.post("/api/maintenance/inactive-sweep").status_code == 401


class TestSweeps:
    def test_expire_sweep_deletes_stale_lobbies(self, app, host_client, anon_client):
        match = host_client.post("/api/matches", json=CONFIG).json()
        response = anon_client.post("/api/maintenance/expire-sweep", headers={"X-Maintenance-Key": MAINTENANCE_KEY})
        assert response.json() == {"deleted": 0}

        lobby = app.state.lobby_service
        real_clock = lobby._clock
        lobby._clock = lambda: real_clock() + timedelta(minutes=10)

        response = anon_client.post("/api/maintenance/expire-sweep", headers={"X-Maintenance-Key": MAINTENANCE_KEY})
        assert response.json() == {"deleted": 1}
        assert host_client.get(f"/api/matches/{match['id']}").status_code == 404

    def test_inactive_sweep(self, app, host_client, anon_client):
        host_client.post("/api/matches", json=CONFIG)
        lobby = app.state.lobby_service
        real_clock = lobby._clock
        lobby._clock = lambda: real_clock() + timedelta(hours=13)

        response = anon_client.post(
            "/api/maintenance/inactive-sweep",
            headers={"X-Maintenance-Key": MAINTENANCE_KEY},
        )
        assert response.status_code == 200
        assert response.json() == {"deleted": 1}
