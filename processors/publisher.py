"""
Publishing of rendered statuses to the services each account configures
"""
import logging
from typing import Callable, Dict, List, Tuple
from core.models import AccountConfig, EditEvent
from processors.bluesky_poster import BlueskyPoster
from processors.errors import PublishError
from processors.mastodon_poster import MastodonPoster
from processors.screenshot import take_screenshot, remove_screenshot


def alt_text_for(edit: EditEvent) -> str:
    return f"Screenshot of edit to {edit.page}"


def posters_for(account: AccountConfig) -> List[Tuple[str, object]]:
    """Build a poster for every service the account has credentials for"""
    posters = []
    if account.bluesky:
        posters.append(("Bluesky", BlueskyPoster(account.bluesky)))
    if account.mastodon:
        posters.append(("Mastodon", MastodonPoster(account.mastodon)))
    return posters


def verify_account(account: AccountConfig) -> List[str]:
    """
    Check the credentials of every service an account posts to

    Returns:
        Error messages, empty when everything checked out
    """
    errors = []
    for service, poster in posters_for(account):
        try:
            poster.verify()
        except PublishError as e:
            errors.append(f"{account} ({service}): {e}")
        except KeyError as e:
            errors.append(f"{account} ({service}): missing credential {e}")
    return errors


class Publisher:
    """
    Hands statuses to Bluesky and Mastodon

    For each service the stages run in order (capture, upload, attach,
    post) and the first failing stage stops that service. The screenshot
    is captured once per status and shared between services.
    """

    def __init__(self, noop: bool = False,
                 capture: Callable[[str, str], str] = take_screenshot,
                 poster_factory: Callable[[AccountConfig], List[Tuple[str, object]]] = posters_for):
        self.noop = noop
        self.capture = capture
        self.poster_factory = poster_factory
        self._posters: Dict[int, List[Tuple[str, object]]] = {}

    def posters(self, account: AccountConfig):
        # Keyed by identity so each account keeps its logged-in clients
        key = id(account)
        if key not in self._posters:
            self._posters[key] = self.poster_factory(account)
        return self._posters[key]

    def __call__(self, account: AccountConfig, status: str, edit: EditEvent) -> bool:
        """
        Publish a status for an edit

        Returns:
            True when every configured service posted (always True in noop mode)
        """
        if self.noop:
            logging.info(f"noop: not posting for {account}: {status}")
            return True

        posters = self.posters(account)
        if not posters:
            logging.debug(f"{account} has no publishing credentials")
            return True

        image_path = self.capture(edit.url, edit.page)
        if not image_path:
            logging.error(f"capture failed: no screenshot of {edit.url}, not posting for {account}")
            return False

        ok = True
        try:
            for service, poster in posters:
                try:
                    poster.publish(status, edit.url, image_path, alt_text_for(edit))
                except PublishError as e:
                    logging.error(f"{service} {e} ({account})")
                    ok = False
                except KeyError as e:
                    logging.error(f"{service} credentials for {account} missing {e}")
                    ok = False
        finally:
            remove_screenshot(image_path)
        return ok
