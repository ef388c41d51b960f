"""
Loading of the JSON account configuration
"""
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from core.filters import Whitelist
from core.ip_matcher import AttributionTable, InvalidRangeDescriptor
from core.models import AccountConfig
from config.settings import STATUS_BUDGET
from utils.helpers import load_json


class ConfigError(Exception):
    """Raised when the configuration file or an account in it is unusable"""


@dataclass
class MonitorConfig:
    """Accounts to notify plus the wikis to listen to (empty means all)"""
    accounts: List[AccountConfig]
    wikis: List[str] = field(default_factory=list)


def resolve_path(path: str, base_dir: str) -> str:
    """Resolve a path relative to the directory of the config file"""
    if os.path.isabs(path):
        return path
    return os.path.join(base_dir, path)


def load_ranges(ranges, base_dir: str) -> AttributionTable:
    """Build an attribution table, reading it from a separate file if referenced by name"""
    if isinstance(ranges, str):
        ranges_file = resolve_path(ranges, base_dir)
        try:
            ranges = load_json(ranges_file)
        except (OSError, ValueError) as e:
            raise ConfigError(f"Unable to read ranges file {ranges_file}: {e}") from e
        logging.info(f"Loaded ranges from {ranges_file}")
    return AttributionTable.from_config(ranges)


def build_account(data: Dict, base_dir: str = ".", index: int = 0) -> AccountConfig:
    """
    Build one account from its configuration stanza

    Raises:
        ConfigError: if the stanza is missing a template or has bad values
        InvalidRangeDescriptor: if a configured range is malformed
    """
    if not isinstance(data, dict):
        raise ConfigError(f"Account #{index} must be an object")

    name = data.get('name') or f"account #{index}"
    template = data.get('template')
    if not template or not isinstance(template, str):
        raise ConfigError(f"{name}: missing template")

    budget = data.get('budget', STATUS_BUDGET)
    if not isinstance(budget, int) or isinstance(budget, bool) or budget <= 0:
        raise ConfigError(f"{name}: budget must be a positive integer")

    throttle = data.get('throttle')
    if throttle is None:
        throttle = False
    elif not isinstance(throttle, bool):
        raise ConfigError(f"{name}: throttle must be true or false, got {throttle!r}")

    ranges = None
    if data.get('ranges') is not None:
        ranges = load_ranges(data['ranges'], base_dir)

    whitelist = None
    if data.get('whitelist') is not None:
        try:
            whitelist = Whitelist.from_config(data['whitelist'])
        except ValueError as e:
            raise ConfigError(f"{name}: {e}") from e

    for service in ('bluesky', 'mastodon'):
        if data.get(service) is not None and not isinstance(data[service], dict):
            raise ConfigError(f"{name}: {service} credentials must be an object")

    return AccountConfig(
        template=template,
        ranges=ranges,
        whitelist=whitelist,
        throttle=throttle,
        budget=budget,
        bluesky=data.get('bluesky'),
        mastodon=data.get('mastodon'),
        name=name,
    )


def load_config(path: str) -> MonitorConfig:
    """
    Load the monitor configuration

    Accounts with bad settings are logged and left out so the rest keep working.

    Args:
        path: Path to the JSON config file

    Raises:
        ConfigError: if the file is unreadable or has no usable accounts stanza
    """
    try:
        config = load_json(path)
    except (OSError, ValueError) as e:
        raise ConfigError(f"Unable to read config {path}: {e}") from e

    if not isinstance(config, dict) or not config.get('accounts'):
        raise ConfigError("missing accounts stanza in config")
    if not isinstance(config['accounts'], list):
        raise ConfigError("accounts must be a list")

    base_dir = os.path.dirname(os.path.abspath(path))
    accounts = []
    for index, data in enumerate(config['accounts']):
        try:
            accounts.append(build_account(data, base_dir, index))
        except (ConfigError, InvalidRangeDescriptor) as e:
            logging.error(f"Skipping misconfigured account: {e}")

    wikis = config.get('wikis') or []
    if isinstance(wikis, str):
        wikis = [wikis]

    logging.info(f"Loaded config from {path}: {len(accounts)} of {len(config['accounts'])} accounts usable")
    return MonitorConfig(accounts=accounts, wikis=list(wikis))


def describe_account(account: AccountConfig) -> str:
    """One-line summary of an account for console output"""
    parts = [str(account)]
    if account.ranges is not None:
        total = sum(len(account.ranges.ranges_for(org)) for org in account.ranges.organizations)
        parts.append(f"{len(account.ranges)} organizations / {total} ranges")
    if account.whitelist is not None:
        parts.append(f"{len(account.whitelist)} whitelisted pages")
    if account.throttle:
        parts.append("throttled")
    services = [s for s, creds in (('bluesky', account.bluesky), ('mastodon', account.mastodon)) if creds]
    parts.append(f"publishes to: {', '.join(services) if services else 'nothing'}")
    return " | ".join(parts)


def find_account(config: MonitorConfig, name: str) -> Optional[AccountConfig]:
    for account in config.accounts:
        if account.name == name:
            return account
    return None
