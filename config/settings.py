"""
Centralized configuration for the anonymous edit monitor
"""
import os

# File Paths
CONFIG_FILE = "config.json"
SCREENSHOTS_DIR = os.path.join("data", "screenshots")
LOG_FILE = "anonedits.log"

# Logging
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
# Client libraries that log every request at INFO
QUIET_LOGGERS = ("httpx", "urllib3", "atproto", "mastodon")

# Wikimedia EventStreams
STREAM_URL = "https://stream.wikimedia.org/v2/stream/recentchange"
USER_AGENT = "anonedits/1.0 (https://github.com/anonedits/anonedits)"
RECONNECT_DELAY = 5  # Seconds to wait before reconnecting a dropped stream

# Status rendering
STATUS_BUDGET = 140
# Links are counted at the width of the publishing surface's shortened form
SHORT_URL_PLACEHOLDER = "https://t.co/BzHLWr31Ce"

# Screenshots
DIFF_SELECTOR = ".diff.diff-contentalign-left"
SCREENSHOT_VIEWPORT = {'width': 1000, 'height': 1920}
SCREENSHOT_CLIP = {'x': 0, 'y': 0, 'width': 1000, 'height': 1200}
PAGE_LOAD_TIMEOUT = 30000  # milliseconds

# Bluesky
BLUESKY_MAX_IMAGE_BYTES = 1000000
