"""
Streaming wiki monitoring mode using the Wikimedia EventStreams API
"""
import json
import logging
import time
from datetime import datetime
from typing import Collection, Dict, Iterator, Optional
import colorama
import requests
import sseclient
from config.loader import MonitorConfig
from config.settings import STREAM_URL, USER_AGENT, RECONNECT_DELAY
from core.dispatch import EditDispatcher
from core.models import EditEvent
from utils.helpers import convert_timestamp, is_ip_address

DIFF_EVENT_TYPES = ('edit', 'new')


def diff_url_for(data: Dict) -> str:
    """
    Build the diff URL for a recentchange event

    Returns:
        The URL, or an empty string for events without a viewable diff
    """
    server_url = data.get('server_url')
    revision = data.get('revision')
    if data.get('type') not in DIFF_EVENT_TYPES or not server_url or not isinstance(revision, dict):
        return ""

    new_id = revision.get('new')
    old_id = revision.get('old')
    if not new_id:
        return ""
    if old_id:
        return f"{server_url}/w/index.php?diff={new_id}&oldid={old_id}"
    return f"{server_url}/w/index.php?oldid={new_id}"


def event_to_edit(data: Dict, wikis: Collection[str] = ()) -> Optional[EditEvent]:
    """
    Convert an EventStreams recentchange payload to an EditEvent

    Args:
        data: Decoded event payload
        wikis: Wiki ids to keep; empty keeps every wiki

    Returns:
        EditEvent, or None when the event is incomplete or filtered out
    """
    wiki = data.get('wiki')
    title = data.get('title')
    user = data.get('user')
    if not wiki or not title or not user:
        return None
    if wikis and wiki not in wikis:
        return None

    meta = data.get('meta') if isinstance(data.get('meta'), dict) else {}
    return EditEvent(
        wiki=wiki,
        page=title,
        editor=user,
        anonymous=is_ip_address(user),
        url=diff_url_for(data),
        timestamp=meta.get('dt') or data.get('timestamp'),
        comment=data.get('comment', '') or '',
    )


def iter_edits(events, wikis: Collection[str] = ()) -> Iterator[EditEvent]:
    """Decode SSE events into edits, skipping malformed payloads"""
    for event in events:
        if not event.data:
            continue
        try:
            data = json.loads(event.data)
        except json.JSONDecodeError as e:
            logging.debug(f"Failed to parse event data: {e}")
            continue
        if not isinstance(data, dict):
            continue

        edit = event_to_edit(data, wikis)
        if edit is not None:
            yield edit


def print_notification(edit: EditEvent, statuses):
    """Show published statuses on the console"""
    timestamp_str = convert_timestamp(edit.timestamp) if edit.timestamp else datetime.now().strftime('%Y-%m-%d %H:%M:%S')
    print(f"\r{' '*80}\r", end="")  # Clear line
    print(f"{colorama.Fore.WHITE}╭─ {colorama.Fore.CYAN}{edit.page}{colorama.Style.RESET_ALL} "
          f"{colorama.Fore.WHITE}({edit.wiki}, {timestamp_str}){colorama.Style.RESET_ALL}")
    print(f"{colorama.Fore.WHITE}├─ {colorama.Fore.YELLOW}Editor: {colorama.Fore.WHITE}{edit.editor}{colorama.Style.RESET_ALL}")
    for status in statuses:
        print(f"{colorama.Fore.WHITE}├─ {colorama.Fore.GREEN}{status}{colorama.Style.RESET_ALL}")
    print(f"{colorama.Fore.WHITE}╰─ {colorama.Fore.BLUE}{edit.url}{colorama.Style.RESET_ALL}\n")


def run_streaming_monitor(config: MonitorConfig, publisher, verbose: bool = False,
                          stream_url: str = STREAM_URL):
    """
    Listen to the recentchange stream and dispatch every edit to the accounts

    Args:
        config: Loaded monitor configuration
        publisher: Callable receiving (account, status, edit)
        verbose: Log every inspected diff URL
        stream_url: EventStreams endpoint
    """
    dispatcher = EditDispatcher(config.accounts, publisher)
    total_edits = 0
    total_statuses = 0
    wiki_filter = set(config.wikis)

    print(f"\n{colorama.Fore.CYAN}{'='*60}{colorama.Style.RESET_ALL}")
    print(f"{colorama.Fore.CYAN}📡 Anonymous Edit Monitor (Streaming){colorama.Style.RESET_ALL}")
    print(f"{colorama.Fore.CYAN}{'='*60}{colorama.Style.RESET_ALL}")
    print(f"{colorama.Fore.WHITE}Accounts: {colorama.Fore.GREEN}{len(config.accounts)}{colorama.Style.RESET_ALL}")
    print(f"{colorama.Fore.WHITE}Wikis: {colorama.Fore.YELLOW}{', '.join(config.wikis) or 'all'}{colorama.Style.RESET_ALL}")
    print(f"{colorama.Fore.CYAN}{'='*60}{colorama.Style.RESET_ALL}\n")

    logging.info("Connecting to EventStreams API...")

    # Auto-reconnect loop
    while True:
        try:
            headers = {'User-Agent': USER_AGENT}
            response = requests.get(stream_url, stream=True, headers=headers, timeout=None)
            response.raise_for_status()

            client = sseclient.SSEClient(response)
            logging.info("Connected to EventStreams - monitoring edits...")
            print(f"{colorama.Fore.GREEN}✅ Connected to EventStreams{colorama.Style.RESET_ALL}\n")

            for edit in iter_edits(client.events(), wiki_filter):
                total_edits += 1
                if verbose and edit.url:
                    logging.debug(edit.url)

                statuses = dispatcher.dispatch(edit)
                if statuses:
                    total_statuses += len(statuses)
                    print_notification(edit, statuses)
                elif total_edits % 100 == 0:
                    current_time = datetime.now().strftime('%H:%M:%S')
                    print(f"\r{colorama.Fore.CYAN}⏳ Streaming... {colorama.Fore.WHITE}[{current_time}] "
                          f"{colorama.Fore.YELLOW}Checked {total_edits} edits{colorama.Style.RESET_ALL}",
                          end="", flush=True)

            logging.warning(f"Stream ended. Reconnecting in {RECONNECT_DELAY} seconds...")
            time.sleep(RECONNECT_DELAY)

        except (requests.exceptions.ConnectionError,
                requests.exceptions.Timeout,
                requests.exceptions.ChunkedEncodingError) as e:
            # Connection dropped - reconnect automatically
            logging.warning(f"Connection lost: {e}. Reconnecting in {RECONNECT_DELAY} seconds...")
            print(f"\n{colorama.Fore.YELLOW}⚠️  Connection lost. Reconnecting in {RECONNECT_DELAY} seconds...{colorama.Style.RESET_ALL}")
            time.sleep(RECONNECT_DELAY)

        except requests.exceptions.HTTPError as e:
            logging.error(f"EventStreams refused the connection: {e}. Retrying in {RECONNECT_DELAY} seconds...")
            time.sleep(RECONNECT_DELAY)

        except KeyboardInterrupt:
            print(f"\n\n{colorama.Fore.YELLOW}⏸️  Shutting down gracefully...{colorama.Style.RESET_ALL}")
            print(f"{colorama.Fore.GREEN}✅ Inspected {total_edits} edits, published {total_statuses} statuses{colorama.Style.RESET_ALL}")
            logging.info(f"Shutting down... inspected {total_edits} edits, published {total_statuses} statuses")
            break

    return total_statuses
