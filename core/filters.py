"""
Per-page whitelist filtering
"""
from typing import Dict, FrozenSet, Tuple


class Whitelist:
    """Exact (wiki, page) pairs whose edits are always reported"""

    def __init__(self, pages: FrozenSet[Tuple[str, str]] = frozenset()):
        self._pages = frozenset(pages)

    @classmethod
    def from_config(cls, mapping: Dict) -> "Whitelist":
        """Build from {wiki: {page: true}}; pages with a falsy value are ignored"""
        if not isinstance(mapping, dict):
            raise ValueError(f"Whitelist must map wikis to pages, got {type(mapping).__name__}")

        pages = set()
        for wiki, wiki_pages in mapping.items():
            if not isinstance(wiki_pages, dict):
                raise ValueError(f"Whitelist for {wiki} must map page titles to true")
            pages.update((wiki, page) for page, enabled in wiki_pages.items() if enabled)
        return cls(frozenset(pages))

    def __len__(self):
        return len(self._pages)

    def is_whitelisted(self, wiki: str, page: str) -> bool:
        return (wiki, page) in self._pages
