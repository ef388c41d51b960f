"""
Bluesky social media posting functionality
"""
import logging
import os
from typing import Dict, List
import piexif
from atproto import Client
from config.settings import BLUESKY_MAX_IMAGE_BYTES
from processors.errors import PublishError


def strip_exif(image_path: str):
    """Remove EXIF data from image"""
    try:
        piexif.remove(image_path)
    except Exception as e:
        # Not all images have EXIF data
        logging.debug(f"No EXIF data removed from {image_path}: {e}")


def read_image(image_path: str) -> bytes:
    """Read a screenshot for upload, enforcing the Bluesky size limit"""
    if not os.path.exists(image_path):
        raise PublishError("upload", f"Image file not found: {image_path}")

    strip_exif(image_path)

    with open(image_path, "rb") as f:
        img_bytes = f.read()

    if len(img_bytes) > BLUESKY_MAX_IMAGE_BYTES:
        raise PublishError(
            "upload",
            f"Image too large: {len(img_bytes)} bytes. Maximum is {BLUESKY_MAX_IMAGE_BYTES:,} bytes")
    return img_bytes


def create_facets_for_url(text: str, url: str) -> List[Dict]:
    """Create facets for a URL in text on Bluesky"""
    # Convert text to bytes to get correct byte positions
    text_bytes = text.encode('utf-8')
    url_bytes = url.encode('utf-8')

    start_pos = text_bytes.find(url_bytes)
    if not url_bytes or start_pos == -1:
        return []

    end_pos = start_pos + len(url_bytes)

    return [{
        "index": {
            "byteStart": start_pos,
            "byteEnd": end_pos
        },
        "features": [{
            "$type": "app.bsky.richtext.facet#link",
            "uri": url
        }]
    }]


class BlueskyPoster:
    """Posts statuses with a diff screenshot to one Bluesky account"""

    def __init__(self, credentials: Dict[str, str], client_factory=Client):
        self.credentials = credentials
        self.client_factory = client_factory
        self._client = None

    @property
    def handle(self) -> str:
        return self.credentials.get('handle') or self.credentials.get('email', '')

    def login(self) -> Client:
        """Log in once and reuse the session"""
        if self._client is None:
            client = self.client_factory()
            try:
                client.login(self.handle, self.credentials['password'])
            except Exception as e:
                raise PublishError("login", f"Failed to log in to Bluesky as {self.handle}: {e}") from e
            self._client = client
        return self._client

    def upload(self, image_path: str):
        """Upload the screenshot and return the blob"""
        client = self.login()
        img_bytes = read_image(image_path)
        try:
            return client.upload_blob(img_bytes).blob
        except Exception as e:
            raise PublishError("upload", f"Bluesky image upload failed: {e}") from e

    @staticmethod
    def attach(blob, alt_text: str) -> Dict:
        """Build the image embed carrying the uploaded blob"""
        return {
            "$type": "app.bsky.embed.images",
            "images": [{"alt": alt_text, "image": blob}]
        }

    def post(self, status: str, url: str, embed: Dict = None):
        client = self.login()
        facets = create_facets_for_url(status, url)
        try:
            return client.send_post(text=status, facets=facets, embed=embed)
        except Exception as e:
            raise PublishError("post", f"Bluesky post failed: {e}") from e

    def publish(self, status: str, url: str, image_path: str, alt_text: str):
        """Run upload, attach and post in order"""
        blob = self.upload(image_path)
        embed = self.attach(blob, alt_text)
        response = self.post(status, url, embed)
        logging.info(f"Posted to Bluesky as {self.handle}: {status}")
        return response

    def verify(self):
        """Check the credentials by logging in"""
        self.login()
