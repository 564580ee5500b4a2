"""
Tests for the release feed

HTTP is served by httpx.MockTransport through the FakeRemote fixture.
"""

import asyncio

import httpx
import pytest

from handoff_updater.core.exceptions import UpdateFeedError
from handoff_updater.update.feed import ReleaseFeed, add_access_token
from tests.fakes import CHANGELOG_URL, REPO_URL, release_json


def make_feed(remote, **kwargs) -> ReleaseFeed:
    return ReleaseFeed(REPO_URL, CHANGELOG_URL, client=remote.client(), **kwargs)


class TestAddAccessToken:
    """Tests for add_access_token"""

    def test_no_token_leaves_url_untouched(self):
        """Test URL without token"""
        assert add_access_token("https://example.com/a.zip", None) == "https://example.com/a.zip"
        assert add_access_token("https://example.com/a.zip", "") == "https://example.com/a.zip"

    def test_token_is_appended_as_query_parameter(self):
        """Test token as access_token parameter"""
        url = add_access_token("https://example.com/a.zip", "secret")
        assert httpx.URL(url).params["access_token"] == "secret"

    def test_existing_query_is_kept(self):
        """Test that existing query parameters are kept"""
        url = httpx.URL(add_access_token("https://example.com/a.zip?raw=1", "secret"))
        assert url.params["raw"] == "1"
        assert url.params["access_token"] == "secret"


class TestLatestRelease:
    """Test fetching and caching of the latest release"""

    def test_parses_release_and_assets(self, remote):
        """Test parsing of the release descriptor"""
        feed = make_feed(remote)

        release = asyncio.run(feed.get_latest_release())

        assert release.tag_name == "v2.0.0"
        assert str(release.version) == "2.0.0"
        assert [a.name for a in release.assets] == [
            "server-2.0.0-windows.zip",
            "server-2.0.0-linux.tar.gz",
        ]
        assert release.assets[0].browser_download_url.endswith("server-2.0.0-windows.zip")

    def test_result_is_cached(self, remote):
        """Test that repeated calls reuse the cached release"""
        feed = make_feed(remote)

        async def scenario():
            await feed.get_latest_release()
            remote.release = release_json("v3.0.0")
            return await feed.get_latest_release()

        assert asyncio.run(scenario()).tag_name == "v2.0.0"
        assert remote.count("/releases/latest") == 1

    def test_cache_expires(self, remote):
        """Test refetch after the cache TTL"""
        now = [0.0]
        feed = make_feed(remote, clock=lambda: now[0])

        async def scenario():
            await feed.get_latest_release()
            remote.release = release_json("v3.0.0")
            now[0] += 15 * 60
            return await feed.get_latest_release()

        assert asyncio.run(scenario()).tag_name == "v3.0.0"
        assert remote.count("/releases/latest") == 2

    def test_concurrent_calls_trigger_one_round_trip(self, remote):
        """Test single request for concurrent callers"""
        async def slow_handler(request):
            await asyncio.sleep(0.05)
            return remote.handler(request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(slow_handler))
        feed = ReleaseFeed(REPO_URL, CHANGELOG_URL, client=client)

        async def scenario():
            return await asyncio.gather(feed.get_latest_release(), feed.get_latest_release())

        first, second = asyncio.run(scenario())

        assert first is second
        assert remote.count("/releases/latest") == 1

    def test_token_is_added_to_release_url(self, remote):
        """Test token on the release request"""
        feed = make_feed(remote, access_token="secret")

        asyncio.run(feed.get_latest_release())

        assert remote.requests[0].url.params["access_token"] == "secret"

    def test_http_error_raises_feed_error(self, remote):
        """Test error status mapping to UpdateFeedError"""
        remote.release_status = 500
        feed = make_feed(remote)

        with pytest.raises(UpdateFeedError, match="HTTP 500"):
            asyncio.run(feed.get_latest_release())

    def test_transport_error_raises_feed_error(self):
        """Test network failure mapping to UpdateFeedError"""
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        feed = ReleaseFeed(REPO_URL, CHANGELOG_URL, client=client)

        with pytest.raises(UpdateFeedError, match="connection refused"):
            asyncio.run(feed.get_latest_release())

    def test_invalid_payload_raises_feed_error(self, remote):
        """Test malformed release payload"""
        remote.release = {"unexpected": True}
        feed = make_feed(remote)

        with pytest.raises(UpdateFeedError):
            asyncio.run(feed.get_latest_release())

    def test_failure_after_expiry_does_not_serve_stale_release(self, remote):
        """Test that a failed refresh raises instead of serving the old release"""
        now = [0.0]
        feed = make_feed(remote, clock=lambda: now[0])

        async def scenario():
            await feed.get_latest_release()
            now[0] += 15 * 60 + 1
            remote.release_status = 503
            await feed.get_latest_release()

        with pytest.raises(UpdateFeedError):
            asyncio.run(scenario())


class TestChangelog:
    """Test changelog retrieval"""

    def test_entries_are_sorted_newest_first(self, remote):
        """Test changelog ordering by version"""
        remote.changelog = [
            {"version": "v1.0.0", "changes": [{"type": "feature", "text": "Initial"}]},
            {"version": "v2.0.0", "date": "2026-09-01", "changes": []},
            {"version": "v1.5.0", "changes": [{"type": "fix", "text": "Crash"}]},
        ]
        feed = make_feed(remote)

        entries = asyncio.run(feed.get_all_changes())

        assert [e.version for e in entries] == ["v2.0.0", "v1.5.0", "v1.0.0"]
        assert entries[2].changes[0].text == "Initial"
        assert entries[0].date == "2026-09-01"

    def test_non_success_status_raises_feed_error(self, remote):
        """Test changelog error status"""
        remote.changelog_status = 404
        feed = make_feed(remote)

        with pytest.raises(UpdateFeedError, match="HTTP 404"):
            asyncio.run(feed.get_all_changes())

    def test_changelog_is_not_cached(self, remote):
        """Test that every changelog call hits the remote"""
        feed = make_feed(remote)

        async def scenario():
            await feed.get_all_changes()
            await feed.get_all_changes()

        asyncio.run(scenario())
        assert remote.count("changelog.json") == 2
