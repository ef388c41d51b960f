"""
Data types shared by the feed, the dispatcher and the publishers
"""
from dataclasses import dataclass
from typing import Dict, Optional
from core.filters import Whitelist
from core.ip_matcher import AttributionTable
from config.settings import STATUS_BUDGET


@dataclass(frozen=True)
class EditEvent:
    """
    One observed edit

    Attributes:
        wiki: Wiki identifier, e.g. "enwiki"
        page: Edited page title
        editor: Username, or the IP address for logged-out editors
        anonymous: True when the editor is an IP address
        url: Diff URL; empty for events without a viewable diff
        timestamp: ISO timestamp of the edit, when known
        comment: Edit summary
    """
    wiki: str
    page: str
    editor: str
    anonymous: bool
    url: str
    timestamp: Optional[str] = None
    comment: str = ""


@dataclass(frozen=True)
class AccountConfig:
    """
    One notification target

    ranges and whitelist are None when the account does not configure them.
    bluesky and mastodon hold publisher credentials and are not read by
    the dispatcher.
    """
    template: str
    ranges: Optional[AttributionTable] = None
    whitelist: Optional[Whitelist] = None
    throttle: bool = False
    budget: int = STATUS_BUDGET
    bluesky: Optional[Dict[str, str]] = None
    mastodon: Optional[Dict[str, str]] = None
    name: str = ""

    def __str__(self):
        return self.name or "unnamed account"
