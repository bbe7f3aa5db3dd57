import asyncio
import json
import unittest
from datetime import timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

from docpilot.database.memory_store import MemoryStore
from docpilot.dtos.webhook import PushEvent
from docpilot.entities import AnalysisResultType, Repository
from docpilot.services.change_source import CommitDetail
from docpilot.services.analysis.llm_engine import LLMAnalysisEngine
from docpilot.services.ingestion_service import IngestionPipeline
from docpilot.services.pipeline_exceptions import (
    AdapterUnavailable,
    MissingCredential,
    RepositoryNotFound,
)
from docpilot.utils.datetime import utc_now

from doubles import FakeAnalysisEngine, FakeChangeSource, make_source_commit


class IngestionTestCase(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.store = MemoryStore()
        self.source = FakeChangeSource()
        self.engine = FakeAnalysisEngine()
        self.pipeline = IngestionPipeline(
            self.store,
            self.source.factory,
            self.engine,
            lookback_hours=24,
            fetch_limit=50,
            call_timeout=5,
            diff_max_chars=5000,
        )
        self.repo = await self.store.repositories.insert(
            Repository(
                name="widgets",
                git_url="https://github.com/acme/widgets",
                full_name="acme/widgets",
                credential="ghp_secret",
            )
        )

    async def _stored_hashes(self):
        commits = await self.store.commits.list_all(self.repo.id)
        return {c.commit_hash for c in commits}


class TestSyncRepository(IngestionTestCase):
    async def test_sync_stores_and_analyzes_new_commits(self):
        self.source.commits = [make_source_commit("a1", 1), make_source_commit("b2", 2)]

        summary = await self.pipeline.sync_repository(self.repo.id_str)

        self.assertEqual(summary.commits_processed, 2)
        self.assertEqual(summary.new_commits, 2)
        self.assertEqual(summary.analyzed, 2)
        self.assertEqual(summary.suggestions_created, 2)
        self.assertEqual(await self._stored_hashes(), {"a1", "b2"})

        suggestions = await self.store.suggestions.list(repository_id=self.repo.id)
        self.assertEqual(len(suggestions), 2)
        self.assertTrue(all(s.status == "pending" for s in suggestions))
        self.assertTrue(all(s.commit_id is not None for s in suggestions))

        audits = await self.store.analysis_results.list(
            self.repo.id, result_type=AnalysisResultType.COMMIT_ANALYSIS.value
        )
        self.assertEqual(len(audits), 2)
        self.assertEqual(self.source.credentials, ["ghp_secret"])

    async def test_second_sync_is_idempotent(self):
        self.source.commits = [make_source_commit("a1"), make_source_commit("b2", 1)]
        await self.pipeline.sync_repository(self.repo.id_str)

        again = await self.pipeline.sync_repository(self.repo.id_str)

        self.assertEqual(again.commits_processed, 2)
        self.assertEqual(again.new_commits, 0)
        self.assertEqual(again.duplicates, 2)
        self.assertEqual(again.suggestions_created, 0)
        self.assertEqual(len(self.engine.analyzed), 2)
        self.assertEqual(len(await self.store.commits.list_all(self.repo.id)), 2)

    async def test_repeated_hash_in_one_batch_is_stored_once(self):
        self.source.commits = [
            make_source_commit("aaa", 1),
            make_source_commit("bbb", 2),
            make_source_commit("aaa", 1),
        ]

        summary = await self.pipeline.sync_repository(self.repo.id_str)

        self.assertEqual(summary.commits_processed, 3)
        self.assertEqual(summary.new_commits, 2)
        self.assertEqual(summary.duplicates, 1)
        self.assertEqual(self.engine.analyzed, ["commit aaa", "commit bbb"])

    async def test_failed_analysis_does_not_stop_the_batch(self):
        self.source.commits = [
            make_source_commit("a1", 1),
            make_source_commit("b2", 2),
            make_source_commit("c3", 3),
        ]
        self.engine.failing = {"commit b2"}

        summary = await self.pipeline.sync_repository(self.repo.id_str)

        self.assertEqual(summary.new_commits, 3)
        self.assertEqual(summary.analyzed, 2)
        self.assertEqual(summary.analysis_failed, 1)
        self.assertEqual(await self._stored_hashes(), {"a1", "b2", "c3"})

        files = {s.file_name for s in await self.store.suggestions.list()}
        self.assertEqual(files, {"src/a1.py", "src/c3.py"})

        failures = await self.store.analysis_results.list(
            self.repo.id, result_type=AnalysisResultType.COMMIT_ANALYSIS_FAILED.value
        )
        self.assertEqual(len(failures), 1)
        self.assertEqual(failures[0].content["commit_hash"], "b2")

        refreshed = await self.store.repositories.get(self.repo.id)
        self.assertIsNotNone(refreshed.last_sync_at)

    async def test_failed_commit_is_not_reanalyzed(self):
        self.source.commits = [make_source_commit("b2")]
        self.engine.failing = {"commit b2"}
        await self.pipeline.sync_repository(self.repo.id_str)

        self.engine.failing = set()
        summary = await self.pipeline.sync_repository(self.repo.id_str)

        self.assertEqual(summary.duplicates, 1)
        self.assertEqual(self.engine.analyzed, ["commit b2"])

    async def test_commit_without_diff_is_stored_but_not_analyzed(self):
        self.source.commits = [make_source_commit("nodiff", diff=None)]

        summary = await self.pipeline.sync_repository(self.repo.id_str)

        self.assertEqual(summary.new_commits, 1)
        self.assertEqual(summary.analysis_skipped, 1)
        self.assertEqual(self.engine.analyzed, [])

    async def test_long_diff_is_truncated_before_storage(self):
        commit = make_source_commit("big", diff="x" * 10_000)
        self.source.commits = [commit]

        await self.pipeline.sync_repository(self.repo.id_str)

        stored = (await self.store.commits.list_all(self.repo.id))[0]
        self.assertEqual(len(stored.diff), 5000)

    async def test_listing_failure_keeps_watermark(self):
        self.source.fail_listing = True

        with self.assertRaises(AdapterUnavailable):
            await self.pipeline.sync_repository(self.repo.id_str)

        refreshed = await self.store.repositories.get(self.repo.id)
        self.assertIsNone(refreshed.last_sync_at)
        self.assertEqual(await self._stored_hashes(), set())

    async def test_first_sync_looks_back_then_uses_watermark(self):
        before = utc_now()
        await self.pipeline.sync_repository(self.repo.id_str)
        first_since = self.source.list_calls[0]["since"]
        self.assertLessEqual(first_since, before - timedelta(hours=24) + timedelta(seconds=5))

        await self.pipeline.sync_repository(self.repo.id_str)
        refreshed = await self.store.repositories.get(self.repo.id)
        second_since = self.source.list_calls[1]["since"]
        self.assertGreaterEqual(second_since, before)
        self.assertLessEqual(second_since, refreshed.last_sync_at)

    async def test_unknown_repository(self):
        with self.assertRaises(RepositoryNotFound):
            await self.pipeline.sync_repository("5f0000000000000000000000")
        with self.assertRaises(RepositoryNotFound):
            await self.pipeline.sync_repository("not-an-id")

    async def test_inactive_repository_is_not_synced(self):
        await self.store.repositories.update_fields(self.repo.id, {"is_active": False})

        with self.assertRaises(RepositoryNotFound):
            await self.pipeline.sync_repository(self.repo.id_str)

    async def test_missing_credential(self):
        bare = await self.store.repositories.insert(
            Repository(
                name="docs",
                git_url="https://github.com/acme/docs",
                full_name="acme/docs",
            )
        )

        with self.assertRaises(MissingCredential):
            await self.pipeline.sync_repository(bare.id_str)
        self.assertEqual(self.source.list_calls, [])

    async def test_concurrent_syncs_analyze_each_commit_once(self):
        self.source.commits = [make_source_commit(f"c{i}", i) for i in range(5)]

        results = await asyncio.gather(
            self.pipeline.sync_repository(self.repo.id_str),
            self.pipeline.sync_repository(self.repo.id_str),
        )

        self.assertEqual(sum(r.new_commits for r in results), 5)
        self.assertEqual(len(self.engine.analyzed), 5)
        self.assertEqual(len(await self.store.suggestions.list()), 5)

    async def test_slow_detail_batch_does_not_fail_the_sync(self):
        self.source.commits = [make_source_commit(f"s{i}", i) for i in range(10)]
        self.source.detail_delay = 0.02
        pipeline = IngestionPipeline(
            self.store, self.source.factory, self.engine, call_timeout=0.1
        )

        summary = await pipeline.sync_repository(self.repo.id_str)

        self.assertEqual(summary.new_commits, 10)
        self.assertEqual(summary.analyzed, 10)
        stored = await self.store.commits.list_all(self.repo.id)
        self.assertTrue(all(c.diff == "+ line" for c in stored))

    async def test_sync_fetches_details_only_for_unseen_commits(self):
        self.source.commits = [make_source_commit("a1", 1)]
        await self.pipeline.sync_repository(self.repo.id_str)
        self.source.commits.append(make_source_commit("b2", 2))

        await self.pipeline.sync_repository(self.repo.id_str)

        self.assertEqual(self.source.detail_calls, [["a1"], ["b2"]])

    async def test_analysis_timeout_is_audited_and_batch_continues(self):
        self.source.commits = [make_source_commit("slow", 1), make_source_commit("fast", 2)]
        analyze = self.engine.analyze_commit

        async def analyze_commit(message, diff, changed_files):
            if message == "commit slow":
                await asyncio.sleep(1)
            return await analyze(message, diff, changed_files)

        self.engine.analyze_commit = analyze_commit
        pipeline = IngestionPipeline(
            self.store, self.source.factory, self.engine, call_timeout=0.05
        )

        summary = await pipeline.sync_repository(self.repo.id_str)

        self.assertEqual(summary.new_commits, 2)
        self.assertEqual(summary.analysis_failed, 1)
        self.assertEqual(summary.analyzed, 1)
        failures = await self.store.analysis_results.list(
            self.repo.id, result_type=AnalysisResultType.COMMIT_ANALYSIS_FAILED.value
        )
        self.assertEqual(failures[0].content["commit_hash"], "slow")
        refreshed = await self.store.repositories.get(self.repo.id)
        self.assertIsNotNone(refreshed.last_sync_at)

    async def test_cancelled_sync_keeps_watermark(self):
        self.source.commits = [make_source_commit("a1", 1), make_source_commit("b2", 2)]
        started = asyncio.Event()

        async def blocking_analysis(message, diff, changed_files):
            started.set()
            await asyncio.Event().wait()

        self.engine.analyze_commit = blocking_analysis
        task = asyncio.create_task(self.pipeline.sync_repository(self.repo.id_str))
        await started.wait()

        task.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await task

        refreshed = await self.store.repositories.get(self.repo.id)
        self.assertIsNone(refreshed.last_sync_at)
        self.assertEqual(await self._stored_hashes(), {"a1"})
        self.assertFalse(self.pipeline.locks.is_locked(self.repo.id_str))


def _model_reply(payload) -> SimpleNamespace:
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=json.dumps(payload)))]
    )


class TestSyncWithModelOutput(IngestionTestCase):
    async def _sync_with_replies(self, *payloads):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(
            side_effect=[_model_reply(payload) for payload in payloads]
        )
        engine = LLMAnalysisEngine(client, model="m", chat_model="c", timeout=5)
        pipeline = IngestionPipeline(self.store, self.source.factory, engine, call_timeout=5)
        return await pipeline.sync_repository(self.repo.id_str)

    async def _assert_second_commit_survives(self, bad_payload):
        self.source.commits = [make_source_commit("a1", 1), make_source_commit("b2", 2)]
        valid = {
            "summary": "Adds b2",
            "suggestions": [{"file_name": "src/b2.py", "suggested_content": "Document b2"}],
        }

        summary = await self._sync_with_replies(bad_payload, valid)

        self.assertEqual(summary.new_commits, 2)
        self.assertEqual(summary.analysis_failed, 1)
        self.assertEqual(summary.suggestions_created, 1)
        self.assertEqual(await self._stored_hashes(), {"a1", "b2"})
        refreshed = await self.store.repositories.get(self.repo.id)
        self.assertIsNotNone(refreshed.last_sync_at)

    async def test_list_confidence_fails_only_that_commit(self):
        await self._assert_second_commit_survives(
            {
                "summary": "Adds a1",
                "suggestions": [
                    {"file_name": "a.py", "suggested_content": "x", "confidence": [90]}
                ],
            }
        )

    async def test_object_overall_confidence_fails_only_that_commit(self):
        await self._assert_second_commit_survives(
            {"summary": "Adds a1", "overall_confidence": {"value": 90}}
        )

    async def test_non_string_kind_falls_back_to_module(self):
        self.source.commits = [make_source_commit("a1", 1)]

        summary = await self._sync_with_replies(
            {
                "summary": "Adds a1",
                "suggestions": [
                    {"file_name": "src/a1.py", "suggested_content": "Doc", "kind": 5}
                ],
            }
        )

        self.assertEqual(summary.analyzed, 1)
        suggestions = await self.store.suggestions.list(repository_id=self.repo.id)
        self.assertEqual([s.kind for s in suggestions], ["module"])


class TestIngestPush(IngestionTestCase):
    def _push(self, *shas, full_name="acme/widgets"):
        return PushEvent.model_validate(
            {
                "ref": "refs/heads/main",
                "repository": {"id": 1, "name": "widgets", "full_name": full_name},
                "commits": [
                    {
                        "id": sha,
                        "message": f"commit {sha}",
                        "author": {"name": "Ada", "email": "ada@example.com"},
                        "timestamp": "2024-05-01T12:00:00Z",
                        "added": [f"src/{sha}.py"],
                        "modified": [],
                        "removed": [],
                    }
                    for sha in shas
                ],
            }
        )

    async def test_push_fetches_diffs_only_for_new_commits(self):
        self.source.details = {
            "p1": CommitDetail(files_changed=["src/p1.py"], diff="+ p1"),
            "p2": CommitDetail(files_changed=["src/p2.py"], diff="+ p2"),
        }
        await self.pipeline.ingest_push(self._push("p1"))

        summary = await self.pipeline.ingest_push(self._push("p1", "p2"))

        self.assertEqual(self.source.detail_calls, [["p1"], ["p2"]])
        self.assertEqual(summary.commits_processed, 2)
        self.assertEqual(summary.new_commits, 1)
        self.assertEqual(self.engine.analyzed, ["commit p1", "commit p2"])

    async def test_push_matches_full_name_case_insensitively(self):
        self.source.details = {"p1": CommitDetail(files_changed=["a.py"], diff="+")}

        summary = await self.pipeline.ingest_push(self._push("p1", full_name="Acme/Widgets"))

        self.assertEqual(summary.new_commits, 1)

    async def test_push_survives_detail_failure(self):
        self.source.fail_details = True

        summary = await self.pipeline.ingest_push(self._push("p1"))

        self.assertEqual(summary.new_commits, 1)
        self.assertEqual(summary.analysis_skipped, 1)
        self.assertEqual(await self._stored_hashes(), {"p1"})

    async def test_push_detail_batch_longer_than_call_timeout(self):
        shas = [f"p{i}" for i in range(5)]
        self.source.details = {
            sha: CommitDetail(files_changed=[f"src/{sha}.py"], diff=f"+ {sha}") for sha in shas
        }
        self.source.detail_delay = 0.02
        pipeline = IngestionPipeline(
            self.store, self.source.factory, self.engine, call_timeout=0.05
        )

        summary = await pipeline.ingest_push(self._push(*shas))

        self.assertEqual(summary.analyzed, 5)
        stored = await self.store.commits.list_all(self.repo.id)
        self.assertEqual(sorted(c.diff for c in stored), [f"+ {sha}" for sha in shas])

    async def test_push_for_unregistered_repository(self):
        with self.assertRaises(RepositoryNotFound):
            await self.pipeline.ingest_push(self._push("p1", full_name="acme/other"))
        self.assertEqual(await self._stored_hashes(), set())


if __name__ == "__main__":
    unittest.main()
