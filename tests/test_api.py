"""
tests/test_api.py

HTTP contract of the submit / status endpoints and the supplemental
job overview routes, through FastAPI's TestClient.
"""

from __future__ import annotations

import json
from dataclasses import replace

import pytest
from fastapi.testclient import TestClient

from store_monitor.errors import StoreDirectoryError
from store_monitor import main
from store_monitor.main import create_app
from tests.conftest import wait_until


def _batch(*visits: dict) -> dict:
    return {"count": len(visits), "visits": list(visits)}


def _visit(store_id: str, *urls: str) -> dict:
    return {"store_id": store_id, "image_url": list(urls), "visit_time": "2024-01-01T10:00:00"}


@pytest.fixture()
def client(directory, fetcher, fast_settings) -> TestClient:
    return TestClient(create_app(directory=directory, fetcher=fetcher, settings=fast_settings))


def _finished_status(client: TestClient, job_id: int) -> dict:
    def poll():
        body = client.get("/api/status", params={"jobid": job_id}).json()
        return body if body["status"] != "ongoing" else None

    return wait_until(poll)


class TestSubmit:
    def test_returns_201_with_job_id(self, client) -> None:
        r = client.post("/api/submit/", json=_batch(_visit("S1", "http://x/a.png")))

        assert r.status_code == 201
        assert r.json() == {"job_id": 1}

    def test_ids_increase(self, client) -> None:
        ids = [client.post("/api/submit/", json=_batch()).json()["job_id"] for _ in range(3)]
        assert ids == [1, 2, 3]

    def test_count_mismatch_creates_no_job(self, client) -> None:
        r = client.post("/api/submit/", json={"count": 2, "visits": [_visit("S1")]})

        assert r.status_code == 400
        assert r.json()["detail"] == "Count does not match the number of visits"
        assert client.get("/api/jobs").json()["jobs"] == []
        assert client.post("/api/submit/", json=_batch()).json()["job_id"] == 1

    @pytest.mark.parametrize(
        "body",
        [
            b"{not json",
            b"",
            b'{"count": "many", "visits": []}',
            b'{"count": "0", "visits": []}',
            b'{"count": true, "visits": [{"store_id": "S1"}]}',
            b'[1, 2]',
        ],
    )
    def test_invalid_json(self, client, body) -> None:
        r = client.post("/api/submit/", content=body, headers={"Content-Type": "application/json"})

        assert r.status_code == 400
        assert r.json()["detail"] == "Invalid JSON payload"

    def test_wrong_method(self, client) -> None:
        assert client.get("/api/submit/").status_code == 405


class TestStatus:
    def test_missing_parameter(self, client) -> None:
        r = client.get("/api/status")
        assert r.status_code == 400
        assert r.json()["detail"] == "Missing jobid parameter"

    def test_empty_parameter_is_missing(self, client) -> None:
        assert client.get("/api/status?jobid=").json()["detail"] == "Missing jobid parameter"

    @pytest.mark.parametrize("jobid", ["99", "abc", "1x"])
    def test_unknown_or_unparsable_job(self, client, jobid) -> None:
        r = client.get("/api/status", params={"jobid": jobid})
        assert r.status_code == 400
        assert r.json()["detail"] == "Job not found"

    def test_wrong_method(self, client) -> None:
        assert client.post("/api/status?jobid=1").status_code == 405

    def test_completed_job_has_no_error_field(self, client) -> None:
        job_id = client.post("/api/submit/", json=_batch(_visit("S1", "http://x/a.png"))).json()["job_id"]

        body = _finished_status(client, job_id)
        assert body == {"status": "completed", "job_id": str(job_id)}

    def test_unknown_store_scenario(self, client) -> None:
        r = client.post(
            "/api/submit/",
            json={"count": 1, "visits": [{"store_id": "S9", "image_url": ["http://x/a.png"], "visit_time": "t"}]},
        )
        assert r.status_code == 201
        job_id = r.json()["job_id"]

        assert _finished_status(client, job_id) == {
            "status": "failed",
            "job_id": str(job_id),
            "error": [{"store_id": "S9", "error": "Invalid store_id"}],
        }

    def test_failed_download_reports_cause_and_siblings_run(self, client, fetcher) -> None:
        job_id = client.post(
            "/api/submit/",
            json=_batch(_visit("S1", "http://x/broken.png", "http://x/a.png"), _visit("S2", "http://x/b.png")),
        ).json()["job_id"]

        body = _finished_status(client, job_id)
        assert body["status"] == "failed"
        assert body["error"] == [{"store_id": "S1", "error": "Failed to download image: image: unknown format"}]
        assert fetcher.calls == ["http://x/broken.png", "http://x/a.png", "http://x/b.png"]


class TestJobOverview:
    def test_detail_includes_results_and_logs(self, client) -> None:
        job_id = client.post("/api/submit/", json=_batch(_visit("S1", "http://x/a.png"))).json()["job_id"]
        _finished_status(client, job_id)

        def poll_detail():
            body = client.get(f"/api/jobs/{job_id}").json()
            return body if len(body["logs"]) == 3 else None

        detail = wait_until(poll_detail)
        assert detail["status"] == "completed"
        assert detail["visits"] == 1
        assert detail["errors"] == []
        assert detail["results"] == [{"store_id": "S1", "image_url": "http://x/a.png", "perimeter": 300}]
        assert [e["step"] for e in detail["logs"]] == ["job_start", "image_processed", "job_finished"]

    def test_detail_unknown_job(self, client) -> None:
        r = client.get("/api/jobs/5")
        assert r.status_code == 404
        assert r.json()["detail"] == "Job not found"

    def test_list(self, client) -> None:
        first = client.post("/api/submit/", json=_batch(_visit("NOPE"))).json()["job_id"]
        _finished_status(client, first)

        jobs = client.get("/api/jobs").json()["jobs"]
        assert len(jobs) == 1
        assert jobs[0]["job_id"] == first
        assert jobs[0]["status"] == "failed"
        assert jobs[0]["error_count"] == 1
        assert jobs[0]["visits"] == 1

    def test_health(self, client) -> None:
        assert client.get("/health").json() == {"status": "ok", "stores": 2}


class TestStartup:
    def test_loads_store_master_on_startup(self, fetcher, fast_settings, tmp_path) -> None:
        (tmp_path / "stores.csv").write_text("AreaCode,StoreName,StoreID\n7100,Corner Mart,S1\n", encoding="utf-8")

        with TestClient(create_app(fetcher=fetcher, settings=fast_settings)) as client:
            assert client.get("/health").json() == {"status": "ok", "stores": 1}
            job_id = client.post("/api/submit/", json=_batch(_visit("S1", "http://x/a.png"))).json()["job_id"]
            assert _finished_status(client, job_id)["status"] == "completed"

    def test_startup_configures_logging(self, directory, fetcher, fast_settings, monkeypatch) -> None:
        levels = []
        monkeypatch.setattr(main, "configure_logging", levels.append)

        with TestClient(create_app(directory=directory, fetcher=fetcher, settings=fast_settings)):
            pass
        assert levels == ["INFO"]

    def test_missing_store_master_aborts_startup(self, fetcher, fast_settings) -> None:
        app = create_app(fetcher=fetcher, settings=fast_settings)
        with pytest.raises(StoreDirectoryError):
            with TestClient(app):
                pass

    def test_job_log_dir_writes_jsonl(self, directory, fetcher, fast_settings, tmp_path) -> None:
        settings = replace(fast_settings, job_log_dir=str(tmp_path / "logs"))
        client = TestClient(create_app(directory=directory, fetcher=fetcher, settings=settings))
        job_id = client.post("/api/submit/", json=_batch(_visit("S1", "http://x/a.png"))).json()["job_id"]
        _finished_status(client, job_id)

        path = tmp_path / "logs" / f"{job_id}.log.jsonl"

        def poll_lines():
            found = path.read_text(encoding="utf-8").splitlines()
            return found if len(found) == 3 else None

        lines = wait_until(poll_lines)
        assert [json.loads(line)["step"] for line in lines] == ["job_start", "image_processed", "job_finished"]
