"""
tests/integration/test_regions.py — Category / City lookups and the
seed-regions CLI command.
"""

from __future__ import annotations

from backend.app.services.region_service import DEFAULT_CATEGORIES, DEFAULT_CITIES


class TestRegionLookups:

    def test_list_categories_is_public(self, client):
        resp = client.get("/api/v1/regions/categories")
        assert resp.status_code == 200
        assert [c["name"] for c in resp.get_json()["data"]] == list(DEFAULT_CATEGORIES)

    def test_list_cities_is_public(self, client):
        resp = client.get("/api/v1/regions/cities")
        assert resp.status_code == 200
        assert [c["name"] for c in resp.get_json()["data"]] == list(DEFAULT_CITIES)


class TestSeedCommand:

    def test_seed_is_idempotent(self, app, client):
        # clean_tables has already seeded every default name
        result = app.test_cli_runner().invoke(args=["seed-regions"])
        assert result.exit_code == 0
        assert "0 categories, 0 cities created" in result.output

        resp = client.get("/api/v1/regions/categories")
        assert len(resp.get_json()["data"]) == len(DEFAULT_CATEGORIES)
