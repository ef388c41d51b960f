"""Tests for the publishing pipeline in processors/."""

from unittest.mock import MagicMock, patch

import pytest

from core.models import AccountConfig
from processors.bluesky_poster import BlueskyPoster, create_facets_for_url, read_image
from processors.errors import PublishError
from processors.mastodon_poster import MastodonPoster
from processors.publisher import Publisher, alt_text_for, posters_for, verify_account

BLUESKY = {"handle": "watch.bsky.social", "password": "app-password"}
MASTODON = {"access_token": "token", "api_base_url": "https://mastodon.example"}


@pytest.fixture
def screenshot(tmp_path):
    path = tmp_path / "shot.png"
    path.write_bytes(b"\x89PNG fake image")
    return str(path)


class TestCreateFacets:
    """Tests for create_facets_for_url."""

    def test_byte_offsets(self):
        text = "Café edited https://example.org/x"
        facets = create_facets_for_url(text, "https://example.org/x")
        assert facets[0]["index"] == {"byteStart": 13, "byteEnd": 34}
        assert facets[0]["features"][0]["uri"] == "https://example.org/x"

    def test_url_missing(self):
        assert create_facets_for_url("no link here", "https://example.org") == []

    def test_empty_url(self):
        assert create_facets_for_url("text", "") == []


class TestReadImage:

    def test_missing_file(self, tmp_path):
        with pytest.raises(PublishError) as exc:
            read_image(str(tmp_path / "absent.png"))
        assert exc.value.stage == "upload"

    def test_too_large(self, tmp_path):
        path = tmp_path / "big.png"
        path.write_bytes(b"0" * 1000001)
        with pytest.raises(PublishError, match="too large"):
            read_image(str(path))

    def test_reads_bytes(self, screenshot):
        assert read_image(screenshot) == b"\x89PNG fake image"


class TestBlueskyPoster:
    """Tests for BlueskyPoster with a mocked atproto client."""

    def test_publish_runs_every_stage(self, screenshot):
        client = MagicMock()
        client.upload_blob.return_value.blob = "blob-ref"
        poster = BlueskyPoster(BLUESKY, client_factory=lambda: client)

        poster.publish("Org edited Page https://x.org/d", "https://x.org/d", screenshot, "Screenshot of edit to Page")

        client.login.assert_called_once_with("watch.bsky.social", "app-password")
        client.upload_blob.assert_called_once_with(b"\x89PNG fake image")
        kwargs = client.send_post.call_args.kwargs
        assert kwargs["text"] == "Org edited Page https://x.org/d"
        assert kwargs["embed"]["images"] == [{"alt": "Screenshot of edit to Page", "image": "blob-ref"}]
        assert kwargs["facets"][0]["features"][0]["uri"] == "https://x.org/d"

    def test_logs_in_once(self, screenshot):
        client = MagicMock()
        poster = BlueskyPoster(BLUESKY, client_factory=lambda: client)
        poster.publish("a", "u", screenshot, "alt")
        poster.publish("b", "u", screenshot, "alt")
        assert client.login.call_count == 1

    def test_login_failure(self):
        client = MagicMock()
        client.login.side_effect = RuntimeError("bad password")
        poster = BlueskyPoster(BLUESKY, client_factory=lambda: client)
        with pytest.raises(PublishError) as exc:
            poster.verify()
        assert exc.value.stage == "login"

    def test_upload_failure_stops_before_post(self, screenshot):
        client = MagicMock()
        client.upload_blob.side_effect = RuntimeError("server error")
        poster = BlueskyPoster(BLUESKY, client_factory=lambda: client)
        with pytest.raises(PublishError) as exc:
            poster.publish("s", "u", screenshot, "alt")
        assert exc.value.stage == "upload"
        client.send_post.assert_not_called()

    def test_email_credential_accepted(self):
        assert BlueskyPoster({"email": "me@example.org", "password": "x"}).handle == "me@example.org"


class TestMastodonPoster:
    """Tests for MastodonPoster with a mocked Mastodon client."""

    def test_publish(self, screenshot):
        client = MagicMock()
        client.media_post.return_value = {"id": 77}
        factory = MagicMock(return_value=client)
        poster = MastodonPoster(MASTODON, client_factory=factory)

        poster.publish("status", "https://x.org/d", screenshot, "alt text")

        factory.assert_called_once_with(access_token="token", api_base_url="https://mastodon.example")
        client.media_post.assert_called_once_with(screenshot, mime_type="image/png", description="alt text")
        client.status_post.assert_called_once_with("status", media_ids=[77])

    def test_missing_media_id_stops_before_post(self, screenshot):
        client = MagicMock()
        client.media_post.return_value = {}
        poster = MastodonPoster(MASTODON, client_factory=lambda **kw: client)
        with pytest.raises(PublishError) as exc:
            poster.publish("status", "u", screenshot, "alt")
        assert exc.value.stage == "upload"
        client.status_post.assert_not_called()

    def test_post_failure(self, screenshot):
        client = MagicMock()
        client.media_post.return_value = {"id": 1}
        client.status_post.side_effect = RuntimeError("rate limited")
        poster = MastodonPoster(MASTODON, client_factory=lambda **kw: client)
        with pytest.raises(PublishError) as exc:
            poster.publish("status", "u", screenshot, "alt")
        assert exc.value.stage == "post"

    def test_verify_rejected(self):
        client = MagicMock()
        client.account_verify_credentials.side_effect = RuntimeError("401")
        poster = MastodonPoster(MASTODON, client_factory=lambda **kw: client)
        with pytest.raises(PublishError):
            poster.verify()


class TestPublisher:
    """Tests for Publisher orchestration."""

    def make_account(self, **kwargs):
        return AccountConfig(template="{name}", name="watch", **kwargs)

    def test_alt_text(self, make_edit):
        assert alt_text_for(make_edit(page="Test Page")) == "Screenshot of edit to Test Page"

    def test_noop_does_nothing(self, make_edit):
        capture = MagicMock()
        publisher = Publisher(noop=True, capture=capture)
        assert publisher(self.make_account(bluesky=BLUESKY), "status", make_edit()) is True
        capture.assert_not_called()

    def test_no_credentials(self, make_edit):
        capture = MagicMock()
        publisher = Publisher(capture=capture)
        assert publisher(self.make_account(), "status", make_edit()) is True
        capture.assert_not_called()

    def test_capture_failure_short_circuits(self, make_edit):
        poster = MagicMock()
        publisher = Publisher(capture=MagicMock(return_value=None),
                              poster_factory=lambda account: [("Bluesky", poster)])
        assert publisher(self.make_account(bluesky=BLUESKY), "status", make_edit()) is False
        poster.publish.assert_not_called()

    @patch("processors.publisher.remove_screenshot")
    def test_publishes_to_every_service_and_cleans_up(self, mock_remove, make_edit):
        bluesky, mastodon = MagicMock(), MagicMock()
        edit = make_edit(page="Test Page")
        publisher = Publisher(capture=MagicMock(return_value="/tmp/shot.png"),
                              poster_factory=lambda account: [("Bluesky", bluesky), ("Mastodon", mastodon)])

        assert publisher(self.make_account(), "status", edit) is True

        for poster in (bluesky, mastodon):
            poster.publish.assert_called_once_with("status", edit.url, "/tmp/shot.png",
                                                   "Screenshot of edit to Test Page")
        mock_remove.assert_called_once_with("/tmp/shot.png")

    @patch("processors.publisher.remove_screenshot")
    def test_one_service_failing_does_not_block_the_other(self, mock_remove, make_edit):
        bluesky, mastodon = MagicMock(), MagicMock()
        bluesky.publish.side_effect = PublishError("post", "nope")
        publisher = Publisher(capture=MagicMock(return_value="/tmp/shot.png"),
                              poster_factory=lambda account: [("Bluesky", bluesky), ("Mastodon", mastodon)])

        assert publisher(self.make_account(), "status", make_edit()) is False
        mastodon.publish.assert_called_once()
        mock_remove.assert_called_once()

    def test_posters_cached_per_account(self, make_edit):
        factory = MagicMock(return_value=[])
        publisher = Publisher(capture=MagicMock(), poster_factory=factory)
        account = self.make_account()
        publisher(account, "a", make_edit())
        publisher(account, "b", make_edit())
        factory.assert_called_once_with(account)


class TestPostersFor:

    def test_services(self):
        account = AccountConfig(template="t", bluesky=BLUESKY, mastodon=MASTODON)
        names = [name for name, _ in posters_for(account)]
        assert names == ["Bluesky", "Mastodon"]

    def test_none(self):
        assert posters_for(AccountConfig(template="t")) == []


class TestVerifyAccount:

    @patch("processors.publisher.posters_for")
    def test_collects_errors(self, mock_posters):
        good, bad = MagicMock(), MagicMock()
        bad.verify.side_effect = PublishError("login", "rejected")
        mock_posters.return_value = [("Bluesky", good), ("Mastodon", bad)]

        errors = verify_account(AccountConfig(template="t", name="watch"))

        assert errors == ["watch (Mastodon): login failed: rejected"]

    def test_missing_credential_key(self):
        account = AccountConfig(template="t", name="watch", mastodon={"api_base_url": "https://m.example"})
        errors = verify_account(account)
        assert len(errors) == 1
        assert "watch (Mastodon)" in errors[0]
