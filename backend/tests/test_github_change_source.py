import asyncio
import json
import unittest

import httpx

from docpilot.services.github.client import (
    GithubChangeSource,
    create_change_source,
    supported_providers,
)
from docpilot.services.github.exceptions import GithubAuthError, GithubRateLimitError
from docpilot.services.github.locator import parse_github_url
from docpilot.services.pipeline_exceptions import AdapterUnavailable

from doubles import BASE_TIME


def _listing_item(sha: str) -> dict:
    return {
        "sha": sha,
        "commit": {
            "message": f"commit {sha}",
            "author": {
                "name": "Ada",
                "email": "ada@example.com",
                "date": "2024-05-01T12:00:00Z",
            },
        },
    }


class TestParseGithubUrl(unittest.TestCase):
    def test_accepted_forms(self):
        for url in (
            "https://github.com/acme/widgets",
            "https://github.com/acme/widgets.git",
            "https://github.com/acme/widgets/",
            "git@github.com:acme/widgets.git",
            "git@github.com:acme/widgets",
        ):
            with self.subTest(url=url):
                locator = parse_github_url(url)
                self.assertIsNotNone(locator)
                self.assertEqual(locator.full_name, "acme/widgets")

    def test_rejected_forms(self):
        for url in (
            "",
            "https://gitlab.com/acme/widgets",
            "https://github.com/acme",
            "https://github.com/acme/widgets/tree/main",
            "not a url",
        ):
            with self.subTest(url=url):
                self.assertIsNone(parse_github_url(url))


class TestGithubChangeSource(unittest.IsolatedAsyncioTestCase):
    def _source(self, handler, **kwargs) -> GithubChangeSource:
        kwargs.setdefault("diff_max_chars", 5000)
        return GithubChangeSource(
            "ghp_token",
            api_url="https://api.github.test",
            transport=httpx.MockTransport(handler),
            **kwargs,
        )

    async def test_fetch_commits_since_fills_details_in_order(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            path = request.url.path
            if path == "/repos/acme/widgets/commits":
                return httpx.Response(200, json=[_listing_item("a1"), _listing_item("b2")])
            sha = path.rsplit("/", 1)[-1]
            return httpx.Response(
                200,
                json={
                    "files": [
                        {"filename": f"{sha}/x.py", "patch": "@@ x"},
                        {"filename": f"{sha}/y.py", "patch": "@@ y"},
                    ]
                },
            )

        async with self._source(handler) as source:
            commits = await source.fetch_commits_since(
                "acme", "widgets", since=BASE_TIME, limit=20
            )

        self.assertEqual([c.hash for c in commits], ["a1", "b2"])
        self.assertEqual(commits[0].files_changed, ["a1/x.py", "a1/y.py"])
        self.assertEqual(commits[0].diff, "@@ x\n@@ y")
        self.assertEqual(commits[0].timestamp, BASE_TIME)

        listing = seen[0]
        self.assertEqual(listing.url.params["per_page"], "20")
        self.assertEqual(listing.url.params["since"], "2024-05-01T12:00:00Z")
        self.assertEqual(listing.headers["Authorization"], "Bearer ghp_token")

    async def test_failed_detail_yields_empty_commit(self):
        def handler(request: httpx.Request) -> httpx.Response:
            path = request.url.path
            if path == "/repos/acme/widgets/commits":
                return httpx.Response(200, json=[_listing_item("ok"), _listing_item("bad")])
            if path.endswith("/bad"):
                return httpx.Response(500, json={"message": "boom"})
            return httpx.Response(200, json={"files": [{"filename": "a.py", "patch": "+"}]})

        async with self._source(handler) as source:
            commits = await source.fetch_commits_since("acme", "widgets")

        self.assertEqual([c.hash for c in commits], ["ok", "bad"])
        self.assertEqual(commits[0].files_changed, ["a.py"])
        self.assertEqual(commits[1].files_changed, [])
        self.assertIsNone(commits[1].diff)

    async def test_each_detail_request_has_its_own_timeout(self):
        async def handler(request: httpx.Request) -> httpx.Response:
            path = request.url.path
            if path == "/repos/acme/widgets/commits":
                shas = [f"c{i}" for i in range(6)] + ["stuck"]
                return httpx.Response(200, json=[_listing_item(sha) for sha in shas])
            await asyncio.sleep(1 if path.endswith("/stuck") else 0.03)
            return httpx.Response(200, json={"files": [{"filename": "a.py", "patch": "+"}]})

        async with self._source(handler, detail_concurrency=1, timeout=0.15) as source:
            commits = await source.fetch_commits_since("acme", "widgets")

        self.assertEqual(len(commits), 7)
        self.assertTrue(all(c.diff == "+" for c in commits[:6]))
        self.assertEqual(commits[6].files_changed, [])
        self.assertIsNone(commits[6].diff)

    async def test_list_commits_skips_details(self):
        paths = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            return httpx.Response(200, json=[_listing_item("a1")])

        async with self._source(handler) as source:
            commits = await source.list_commits("acme", "widgets", limit=5)

        self.assertEqual([c.hash for c in commits], ["a1"])
        self.assertIsNone(commits[0].diff)
        self.assertEqual(paths, ["/repos/acme/widgets/commits"])

    async def test_diff_truncated_to_limit(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, json={"files": [{"filename": "big.txt", "patch": "x" * 10_000}]}
            )

        async with self._source(handler) as source:
            detail = await source.fetch_commit_detail("acme", "widgets", "abc")

        self.assertEqual(len(detail.diff), 5000)

    async def test_listing_errors_map_to_adapter_unavailable(self):
        cases = [
            (httpx.Response(401, json={}), GithubAuthError),
            (
                httpx.Response(403, headers={"X-RateLimit-Remaining": "0"}, json={}),
                GithubRateLimitError,
            ),
            (httpx.Response(404, json={}), AdapterUnavailable),
            (httpx.Response(200, content=b"not json"), AdapterUnavailable),
        ]
        for response, expected in cases:
            with self.subTest(status=response.status_code, expected=expected.__name__):
                async with self._source(lambda request, r=response: r) as source:
                    with self.assertRaises(expected):
                        await source.fetch_commits_since("acme", "widgets")

    async def test_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with self._source(handler) as source:
            with self.assertRaises(AdapterUnavailable):
                await source.fetch_repository_metadata("acme", "widgets")

    async def test_fetch_commit_details_deduplicates(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request.url.path)
            return httpx.Response(200, json={"files": []})

        async with self._source(handler, detail_concurrency=2) as source:
            details = await source.fetch_commit_details("acme", "widgets", ["a", "b", "a"])

        self.assertEqual(set(details), {"a", "b"})
        self.assertEqual(len(calls), 2)

    async def test_repository_metadata(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/repos/acme/widgets":
                return httpx.Response(
                    200,
                    json={
                        "name": "widgets",
                        "description": "Widget factory",
                        "html_url": "https://github.com/acme/widgets",
                    },
                )
            return httpx.Response(200, json=[_listing_item("head")])

        async with self._source(handler) as source:
            metadata = await source.fetch_repository_metadata("acme", "widgets")

        self.assertEqual(metadata.display_name, "widgets")
        self.assertEqual(metadata.description, "Widget factory")
        self.assertEqual(metadata.latest_commit.hash, "head")

    async def test_register_webhook(self):
        bodies = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(201, json={"id": 12345})

        async with self._source(handler) as source:
            hook_id = await source.register_webhook(
                "acme", "widgets", "https://docpilot.test/webhooks/github", "s3cret"
            )

        self.assertEqual(hook_id, "12345")
        self.assertEqual(bodies[0]["events"], ["push", "pull_request"])
        self.assertEqual(bodies[0]["config"]["content_type"], "json")
        self.assertEqual(bodies[0]["config"]["secret"], "s3cret")


class TestProviderRegistry(unittest.TestCase):
    def test_github_is_supported(self):
        self.assertEqual(supported_providers(), ["github"])

    def test_unknown_provider(self):
        with self.assertRaises(AdapterUnavailable):
            create_change_source("bitbucket", "tok")


if __name__ == "__main__":
    unittest.main()
