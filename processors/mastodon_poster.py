"""
Mastodon posting functionality
"""
import logging
from typing import Dict
from mastodon import Mastodon
from processors.errors import PublishError


class MastodonPoster:
    """Posts statuses with a diff screenshot to one Mastodon account"""

    def __init__(self, credentials: Dict[str, str], client_factory=Mastodon):
        self.credentials = credentials
        self.client_factory = client_factory
        self._client = None

    @property
    def instance(self) -> str:
        return self.credentials.get('api_base_url', '')

    def connect(self) -> Mastodon:
        if self._client is None:
            try:
                self._client = self.client_factory(
                    access_token=self.credentials['access_token'],
                    api_base_url=self.credentials['api_base_url'],
                )
            except Exception as e:
                raise PublishError("login", f"Unable to create Mastodon client for {self.instance}: {e}") from e
        return self._client

    def upload(self, image_path: str, alt_text: str):
        """Upload the screenshot with its alt text and return the media id"""
        client = self.connect()
        try:
            media = client.media_post(image_path, mime_type="image/png", description=alt_text)
        except Exception as e:
            raise PublishError("upload", f"Mastodon media upload failed: {e}") from e

        media_id = media.get('id') if media else None
        if not media_id:
            raise PublishError("upload", "Mastodon returned no media id for the screenshot")
        return media_id

    def post(self, status: str, media_ids=None):
        client = self.connect()
        try:
            return client.status_post(status, media_ids=media_ids)
        except Exception as e:
            raise PublishError("post", f"Mastodon post failed: {e}") from e

    def publish(self, status: str, url: str, image_path: str, alt_text: str):
        """Run upload (with alt text attached) and post in order"""
        media_id = self.upload(image_path, alt_text)
        response = self.post(status, media_ids=[media_id])
        logging.info(f"Posted to Mastodon on {self.instance}: {status}")
        return response

    def verify(self):
        """Check the access token against the instance"""
        client = self.connect()
        try:
            client.account_verify_credentials()
        except Exception as e:
            raise PublishError("login", f"Mastodon credentials rejected by {self.instance}: {e}") from e
