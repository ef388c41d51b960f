"""
Decides which edits get published, and with what status, for each account
"""
import logging
from typing import Callable, List, Optional, Sequence
from core.address import InvalidAddress, parse_address
from core.models import AccountConfig, EditEvent
from core.repeat_filter import RepeatFilter, edit_signature
from core.status import render_status

Publisher = Callable[[AccountConfig, str, EditEvent], bool]


class EditDispatcher:
    """Matches edits against each account and hands statuses to a publisher"""

    def __init__(self, accounts: Sequence[AccountConfig], publisher: Publisher,
                 repeat_filter: Optional[RepeatFilter] = None):
        self.accounts = list(accounts)
        self.publisher = publisher
        self.repeat_filter = repeat_filter if repeat_filter is not None else RepeatFilter()

    def dispatch(self, edit: EditEvent) -> List[str]:
        """
        Inspect an edit for every account

        Returns:
            Statuses handed to the publisher, across all accounts
        """
        published = []
        for account in self.accounts:
            try:
                published.extend(self.inspect(account, edit))
            except Exception as e:
                logging.error(f"Error handling edit to {edit.page} for {account}: {e}", exc_info=True)
        return published

    def inspect(self, account: AccountConfig, edit: EditEvent) -> List[str]:
        """
        Inspect an edit for one account

        Returns:
            Statuses handed to the publisher
        """
        if not edit.url:
            return []

        logging.debug(f"Inspecting {edit.url} for {account}")

        if account.whitelist is not None and account.whitelist.is_whitelisted(edit.wiki, edit.page):
            names = [edit.editor]
        elif account.ranges is not None and edit.anonymous:
            names = self.attribute(account, edit)
        else:
            return []

        published = []
        for name in names:
            status = render_status(account.template, name, edit.page, edit.url, budget=account.budget)
            try:
                handed_off = self.notify(account, status, edit)
            except Exception as e:
                logging.error(f"Error publishing for {account}: {status}: {e}", exc_info=True)
                continue
            if handed_off:
                published.append(status)
        return published

    def attribute(self, account: AccountConfig, edit: EditEvent) -> List[str]:
        """Organizations the editor's address belongs to"""
        try:
            addr = parse_address(edit.editor)
        except InvalidAddress as e:
            logging.warning(f"Skipping attribution of {edit.page} for {account}: {e}")
            return []
        return account.ranges.attribute(addr)

    def notify(self, account: AccountConfig, status: str, edit: EditEvent) -> bool:
        """Hand a status to the publisher unless the account throttles it as a repeat"""
        if account.throttle and self.repeat_filter.is_repeat_and_record(edit.wiki, edit_signature(edit)):
            logging.info(f"Suppressed repeat for {account}: {status}")
            return False

        if self.publisher(account, status, edit):
            logging.info(f"Published for {account}: {status}")
        else:
            logging.warning(f"Publishing failed for {account}: {status}")
        return True
