import json
import unittest
from unittest.mock import AsyncMock

from fastapi.testclient import TestClient

from docpilot.config import Settings
from docpilot.database.memory_store import MemoryStore
from docpilot.dtos.analysis import ProcessImprovement
from docpilot.main import create_app
from docpilot.services.change_source import CommitDetail
from docpilot.services.github_webhook import compute_signature

from doubles import FakeAnalysisEngine, FakeChangeSource, make_source_commit

SECRET = "webhook-secret"


class ApiTestCase(unittest.TestCase):
    def setUp(self):
        self.store = MemoryStore()
        self.source = FakeChangeSource()
        self.engine = FakeAnalysisEngine()
        app = create_app(
            store=self.store,
            change_source_factory=self.source.factory,
            analysis_engine=self.engine,
            app_settings=Settings(WEBHOOK_SECRET=SECRET, SYNC_INTERVAL_MINUTES=0),
        )
        self.client = TestClient(app)
        self.client.__enter__()
        self.addCleanup(self.client.__exit__, None, None, None)

    def register(self, url="https://github.com/acme/widgets", token="ghp_token"):
        return self.client.post(
            "/api/repositories", json={"git_url": url, "access_token": token}
        )


class TestRepositoryEndpoints(ApiTestCase):
    def test_register_and_fetch(self):
        response = self.register()

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["full_name"], "acme/widgets")
        self.assertEqual(body["name"], "widgets")
        self.assertTrue(body["has_credential"])
        self.assertNotIn("credential", body)
        self.assertNotIn("ghp_token", response.text)

        fetched = self.client.get(f"/api/repositories/{body['id']}")
        self.assertEqual(fetched.status_code, 200)
        self.assertEqual(fetched.json()["git_url"], "https://github.com/acme/widgets")

        listing = self.client.get("/api/repositories")
        self.assertEqual([r["id"] for r in listing.json()], [body["id"]])

    def test_registration_errors(self):
        self.assertEqual(self.register().status_code, 201)

        duplicate = self.register("git@github.com:ACME/widgets.git")
        self.assertEqual(duplicate.status_code, 409)
        self.assertEqual(duplicate.json()["code"], "CONFLICT")

        invalid = self.register("https://example.com/nope")
        self.assertEqual(invalid.status_code, 400)

        no_token = self.register("https://github.com/acme/other", token=None)
        self.assertEqual(no_token.status_code, 400)

    def test_unknown_repository(self):
        for method, path in (
            ("get", "/api/repositories/5f0000000000000000000000"),
            ("delete", "/api/repositories/5f0000000000000000000000"),
            ("post", "/api/repositories/5f0000000000000000000000/sync"),
            ("post", "/api/repositories/5f0000000000000000000000/deactivate"),
            ("get", "/api/repositories/bogus/commits"),
        ):
            with self.subTest(path=path):
                response = getattr(self.client, method)(path)
                self.assertEqual(response.status_code, 404)
                self.assertEqual(response.json()["code"], "NOT_FOUND")

    def test_sync_then_review_flow(self):
        repo_id = self.register().json()["id"]
        self.source.commits = [make_source_commit("a1", 1), make_source_commit("b2", 2)]

        sync = self.client.post(f"/api/repositories/{repo_id}/sync")
        self.assertEqual(sync.status_code, 200)
        self.assertEqual(sync.json()["commits_processed"], 2)
        self.assertEqual(sync.json()["suggestions_created"], 2)

        commits = self.client.get(f"/api/repositories/{repo_id}/commits").json()
        self.assertEqual([c["commit_hash"] for c in commits["items"]], ["b2", "a1"])
        self.assertIsNone(commits["items"][0]["diff"])

        pending = self.client.get(
            "/api/documentation-suggestions",
            params={"repository_id": repo_id, "status": "pending"},
        ).json()
        self.assertEqual(pending["total"], 2)
        suggestion_id = pending["items"][0]["id"]

        reviewed = self.client.patch(
            f"/api/documentation-suggestions/{suggestion_id}",
            json={"status": "modified", "suggested_content": "Edited text"},
        )
        self.assertEqual(reviewed.status_code, 200)
        self.assertEqual(reviewed.json()["status"], "modified")
        self.assertEqual(reviewed.json()["suggested_content"], "Edited text")
        self.assertIsNotNone(reviewed.json()["reviewed_at"])

        back_to_pending = self.client.patch(
            f"/api/documentation-suggestions/{suggestion_id}", json={"status": "pending"}
        )
        self.assertEqual(back_to_pending.status_code, 400)

        audits = self.client.get(f"/api/repositories/{repo_id}/analysis-results").json()
        self.assertEqual({a["type"] for a in audits}, {"commit_analysis"})

    def test_review_unknown_suggestion(self):
        response = self.client.patch(
            "/api/documentation-suggestions/5f0000000000000000000000",
            json={"status": "accepted"},
        )
        self.assertEqual(response.status_code, 404)

    def test_sync_adapter_failure_is_bad_gateway(self):
        repo_id = self.register().json()["id"]
        self.source.fail_listing = True

        response = self.client.post(f"/api/repositories/{repo_id}/sync")

        self.assertEqual(response.status_code, 502)

    def test_deactivate_and_delete(self):
        repo_id = self.register().json()["id"]

        deactivated = self.client.post(f"/api/repositories/{repo_id}/deactivate")
        self.assertFalse(deactivated.json()["is_active"])
        self.assertEqual(self.client.post(f"/api/repositories/{repo_id}/sync").status_code, 404)
        self.assertEqual(
            self.client.get("/api/repositories", params={"active_only": True}).json(), []
        )

        self.assertEqual(self.client.delete(f"/api/repositories/{repo_id}").status_code, 204)
        self.assertEqual(self.client.get(f"/api/repositories/{repo_id}").status_code, 404)


class TestInsightEndpoints(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.repo_id = self.register().json()["id"]
        self.source.commits = [make_source_commit("a1", 1)]
        self.client.post(f"/api/repositories/{self.repo_id}/sync")

    def test_detect_missing_docs(self):
        self.engine.improvements = [
            ProcessImprovement(
                pattern="Config changes",
                description="Settings change without docs",
                recommendation="Document every new setting",
                priority="high",
            )
        ]

        response = self.client.post(f"/api/repositories/{self.repo_id}/detect-missing-docs")

        self.assertEqual(response.status_code, 200)
        suggestion = response.json()["suggestions"][0]
        self.assertEqual(suggestion["kind"], "process")
        self.assertEqual(suggestion["confidence"], 90)
        self.assertIsNone(suggestion["commit_id"])

    def test_release_notes(self):
        response = self.client.post(f"/api/repositories/{self.repo_id}/release-notes")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["features"], ["commit a1"])

    def test_analysis_unavailable_is_503(self):
        self.engine.unavailable = True

        response = self.client.post(f"/api/repositories/{self.repo_id}/release-notes")

        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json()["code"], "SERVICE_UNAVAILABLE")

    def test_ask(self):
        response = self.client.post("/api/assistant/ask", json={"question": "What changed?"})

        self.assertEqual(response.json(), {"answer": "answer to What changed?"})
        _, commits, _ = self.engine.questions[0]
        self.assertEqual([c.hash for c in commits], ["a1"])

    def test_ask_rejects_empty_question(self):
        self.assertEqual(
            self.client.post("/api/assistant/ask", json={"question": ""}).status_code, 422
        )


class TestDashboardEndpoints(ApiTestCase):
    def test_stats_and_recent_activity(self):
        repo_id = self.register().json()["id"]
        self.source.commits = [make_source_commit("a1", 1)]
        self.client.post(f"/api/repositories/{repo_id}/sync")

        stats = self.client.get("/api/dashboard/stats")
        self.assertEqual(stats.status_code, 200)
        self.assertEqual(
            stats.json(),
            {"active_repos": 1, "pending_docs": 1, "ai_suggestions": 1, "coverage": 0},
        )

        activity = self.client.get("/api/recent-activity").json()["items"]
        self.assertEqual([item["type"] for item in activity], ["suggestion", "commit"])
        self.assertEqual(activity[1]["commit"]["commit_hash"], "a1")
        self.assertIsNone(activity[1]["commit"]["diff"])
        self.assertEqual({item["repository"] for item in activity}, {"acme/widgets"})
        self.assertEqual(activity[0]["repository_id"], repo_id)


class TestChatEndpoints(ApiTestCase):
    def test_conversation_is_persisted(self):
        self.assertEqual(self.client.get("/api/chat/messages").json(), {"items": []})

        reply = self.client.post("/api/chat/messages", json={"message": "Where are the docs?"})

        self.assertEqual(reply.status_code, 200)
        self.assertEqual(reply.json()["message"]["message"], "answer to Where are the docs?")
        self.assertFalse(reply.json()["message"]["is_from_user"])
        history = self.client.get("/api/chat/messages").json()["items"]
        self.assertEqual([m["is_from_user"] for m in history], [True, False])
        self.assertEqual(history[0]["message"], "Where are the docs?")

    def test_empty_message_rejected(self):
        response = self.client.post("/api/chat/messages", json={"message": ""})

        self.assertEqual(response.status_code, 422)
        self.assertEqual(self.client.get("/api/chat/messages").json(), {"items": []})


class TestHealthEndpoints(ApiTestCase):
    def test_health(self):
        self.assertEqual(self.client.get("/api/health").json()["status"], "healthy")
        self.assertEqual(self.client.get("/api/health/db").json()["database"], "connected")


class TestGithubWebhook(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.register()

    def _push_body(self, full_name="acme/widgets", sha="w1") -> bytes:
        return json.dumps(
            {
                "ref": "refs/heads/main",
                "repository": {"id": 7, "name": "widgets", "full_name": full_name},
                "commits": [
                    {
                        "id": sha,
                        "message": f"commit {sha}",
                        "author": {"name": "Ada"},
                        "timestamp": "2024-05-01T12:00:00Z",
                        "modified": ["src/app.py"],
                    }
                ],
            }
        ).encode()

    def _deliver(self, body: bytes, event="push", signature=None):
        headers = {
            "X-GitHub-Event": event,
            "Content-Type": "application/json",
        }
        if signature is not False:
            headers["X-Hub-Signature-256"] = signature or compute_signature(body, SECRET)
        return self.client.post("/webhooks/github", content=body, headers=headers)

    def test_signed_push_is_ingested(self):
        response = self._deliver(self._push_body())

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "processed")
        self.assertEqual(response.json()["commits_processed"], 1)

    def test_tampered_body_is_rejected_without_side_effects(self):
        body = self._push_body()
        signature = compute_signature(body, SECRET)
        tampered = body.replace(b"w1", b"w2")

        for sig in (signature, False, "sha256=deadbeef", "md5=abc"):
            with self.subTest(signature=sig):
                response = self._deliver(tampered, signature=sig)
                self.assertEqual(response.status_code, 401)

        self.assertEqual(self.source.detail_calls, [])
        self.assertEqual(len(self.client.get("/api/documentation-suggestions").json()["items"]), 0)
        repo_id = self.client.get("/api/repositories").json()[0]["id"]
        commits = self.client.get(f"/api/repositories/{repo_id}/commits").json()
        self.assertEqual(commits["total"], 0)

    def test_other_events_are_ignored(self):
        for event in ("ping", "issues"):
            with self.subTest(event=event):
                response = self._deliver(b"{}", event=event)
                self.assertEqual(response.json()["status"], "ignored")

        pr = json.dumps(
            {
                "action": "opened",
                "number": 3,
                "repository": {"id": 7, "name": "widgets", "full_name": "acme/widgets"},
            }
        ).encode()
        self.assertEqual(self._deliver(pr, event="pull_request").json()["status"], "ignored")

    def test_malformed_payload(self):
        self.assertEqual(self._deliver(b"not json").status_code, 400)
        self.assertEqual(self._deliver(b'{"commits": []}').status_code, 400)

    def test_unregistered_repository(self):
        response = self._deliver(self._push_body(full_name="acme/unknown"))

        self.assertEqual(response.status_code, 404)

    def test_unexpected_failure_is_500(self):
        self.source.details = {"w1": CommitDetail(files_changed=["src/app.py"], diff="+")}
        self.engine.analyze_commit = AsyncMock(side_effect=RuntimeError("boom"))

        response = self._deliver(self._push_body())

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Failed to process webhook"})


if __name__ == "__main__":
    unittest.main()
