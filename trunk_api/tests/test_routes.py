"""
HTTP-level tests against the assembled application
"""

import pytest

from trunk_api.app.core.errors import DuplicatePrefixError
from trunk_api.app.core.capability_registry import CapabilityBinding, default_bindings
from trunk_api.app.models.feature_flags import Environment
from trunk_api.features.export_csv.routes import EMPTY_EXPORT, tasks_to_csv

from .conftest import manifest_dict, write_manifest


@pytest.fixture
def prod_client(make_client):
    return make_client(
        Environment.PRODUCTION,
        manifest_dict("production", advanced_search=False, export_csv=True),
    )


class TestFeatureGating:
    def test_enabled_capability_routed_disabled_is_not_found(self, prod_client):
        export = prod_client.get("/api/export/preview")
        assert export.status_code == 200
        assert export.json()["taskCount"] == 3

        search = prod_client.post("/api/search", json={"query": "csv"})
        assert search.status_code == 404
        body = search.json()
        assert body["error"] == "Not Found"
        assert body["message"] == "Route POST /api/search not found"
        assert "feature flags" in body["hint"]
        assert prod_client.get("/api/search/facets").status_code == 404

    def test_broken_manifest_starts_with_nothing_mounted(self, make_client):
        client = make_client(Environment.PRODUCTION, "features: {export_csv: {enabled: true")

        assert client.get("/api/feature-flags").json()["features"] == {}
        assert client.get("/api/export/csv").status_code == 404
        assert client.post("/api/search", json={}).status_code == 404
        assert client.get("/api/tasks").status_code == 200

    def test_conflicting_capabilities_refuse_to_start(self, make_client):
        clashing = default_bindings() + [
            CapabilityBinding(flag_name="export_v2", prefix="/api/export", router=default_bindings()[1].router),
        ]
        with pytest.raises(DuplicatePrefixError):
            make_client(Environment.PRODUCTION, manifest_dict("production", export_csv=True), clashing)


class TestFeatureFlagEndpoints:
    def test_health(self, prod_client):
        body = prod_client.get("/api/health").json()
        assert body["status"] == "healthy"
        assert body["environment"] == "production"

    def test_get_feature_flags(self, prod_client):
        body = prod_client.get("/api/feature-flags").json()
        assert body["environment"] == "production"
        assert body["features"]["export_csv"]["enabled"] is True
        assert body["features"]["advanced_search"]["enabled"] is False

    def test_reload_changes_flags_but_not_routes(self, prod_client, flags_dir):
        write_manifest(flags_dir, Environment.PRODUCTION,
                       manifest_dict("production", advanced_search=True, export_csv=True))

        body = prod_client.post("/api/feature-flags/reload").json()

        assert body["message"] == "Feature flags reloaded"
        assert body["config"]["features"]["advanced_search"]["enabled"] is True
        assert body["remounted"] is None
        assert prod_client.get("/api/feature-flags").json()["features"]["advanced_search"]["enabled"] is True
        assert prod_client.post("/api/search", json={}).status_code == 404

    def test_reload_with_remount_binds_and_unbinds(self, prod_client, flags_dir):
        write_manifest(flags_dir, Environment.PRODUCTION,
                       manifest_dict("production", advanced_search=True, export_csv=False))

        body = prod_client.post("/api/feature-flags/reload", params={"remount": "true"}).json()

        assert body["remounted"] == {"advanced_search": True, "export_csv": False}
        assert prod_client.post("/api/search", json={}).status_code == 200
        assert prod_client.get("/api/export/csv").status_code == 404

    def test_failed_reload_keeps_previous_config(self, prod_client, flags_dir):
        write_manifest(flags_dir, Environment.PRODUCTION, "features: [unclosed")

        body = prod_client.post("/api/feature-flags/reload", params={"remount": "true"}).json()

        assert "previous configuration kept" in body["message"]
        assert body["error"]
        assert body["config"]["features"]["export_csv"]["enabled"] is True
        assert prod_client.get("/api/export/preview").status_code == 200


class TestTasks:
    def test_list_and_get(self, prod_client):
        body = prod_client.get("/api/tasks").json()
        assert body["count"] == 3
        assert prod_client.get("/api/tasks/1").json()["task"]["title"].startswith("Setup")
        assert prod_client.get("/api/tasks/99").status_code == 404

    def test_create_update_delete(self, prod_client):
        created = prod_client.post("/api/tasks", json={"title": "Write docs", "tags": ["docs"]})
        assert created.status_code == 201
        task = created.json()["task"]
        assert task["id"] == 4
        assert task["status"] == "pending"
        assert task["priority"] == "medium"

        updated = prod_client.put(f"/api/tasks/{task['id']}", json={"status": "completed", "id": 77}).json()["task"]
        assert updated["id"] == 4
        assert updated["status"] == "completed"

        assert prod_client.delete("/api/tasks/4").json()["task"]["title"] == "Write docs"
        assert prod_client.get("/api/tasks/4").status_code == 404

    def test_create_requires_title(self, prod_client):
        response = prod_client.post("/api/tasks", json={"description": "untitled"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Title is required"


class TestAdvancedSearch:
    @pytest.fixture
    def stage_client(self, make_client):
        return make_client(Environment.STAGE, manifest_dict("stage", advanced_search=True, export_csv=True))

    def test_text_and_field_filters(self, stage_client):
        body = stage_client.post("/api/search", json={"query": "CSV"}).json()
        assert [t["id"] for t in body["results"]] == [3]
        assert body["filters"]["query"] == "CSV"

        body = stage_client.post("/api/search", json={"priority": "high", "tags": ["setup"]}).json()
        assert [t["id"] for t in body["results"]] == [1]

    def test_date_range(self, stage_client):
        body = stage_client.post("/api/search", json={"dateFrom": "2025-01-07", "dateTo": "2025-01-08"}).json()
        assert [t["id"] for t in body["results"]] == [2]

    def test_invalid_date_is_bad_request(self, stage_client):
        assert stage_client.post("/api/search", json={"dateFrom": "last week"}).status_code == 400

    def test_facets(self, stage_client):
        facets = stage_client.get("/api/search/facets").json()["facets"]
        assert facets["statuses"] == ["completed", "in_progress"]
        assert facets["priorities"] == ["high", "medium"]
        assert "shipped" in facets["tags"]
        assert facets["totalTasks"] == 3


class TestExportCsv:
    def test_download_headers_and_columns(self, prod_client):
        response = prod_client.get("/api/export/csv", params={"columns": "id,title"})
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert 'filename="tasks_' in response.headers["content-disposition"]
        lines = response.text.split("\n")
        assert lines[0] == "id,title"
        assert lines[1] == "1,Setup trunk-based development workflow"

    def test_filtered_download(self, prod_client):
        response = prod_client.post("/api/export/csv", json={"status": "in_progress", "columns": ["id", "tags"]})
        assert 'filename="filtered_tasks_' in response.headers["content-disposition"]
        assert response.text == "id,tags\n2,feature;dev1"

    def test_csv_escaping(self):
        tasks = [{"id": 1, "title": 'Say "hi", then leave', "tags": ["a", "b"], "description": None}]
        assert tasks_to_csv(tasks, ["id", "title", "tags", "description"]) == (
            'id,title,tags,description\n1,"Say ""hi"", then leave",a;b,'
        )

    def test_empty_export(self):
        assert tasks_to_csv([]) == EMPTY_EXPORT
