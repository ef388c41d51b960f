#!/usr/bin/env python3
"""
Anonymous Wiki Edit Monitor - Main CLI Entry Point

Attribute anonymous wiki edits to organizations by IP range and post them to
Bluesky and Mastodon.
"""
import argparse
import logging
import sys
from config.loader import ConfigError, describe_account, find_account, load_config
from config.settings import CONFIG_FILE, LOG_FILE
from core.address import InvalidAddress, parse_address
from utils.logging_config import setup_logging


def check_credentials(accounts) -> bool:
    """Verify every account's publishing credentials, reporting problems"""
    from processors.publisher import verify_account

    ok = True
    for account in accounts:
        for error in verify_account(account):
            logging.error(error)
            print(f"Error: {error}")
            ok = False
    return ok


def run_monitor(args) -> int:
    config = load_config(args.config)
    if not config.accounts:
        print("Error: no usable accounts in config")
        return 1

    if not (args.noop or args.skip_check) and not check_credentials(config.accounts):
        return 1

    from modes.streaming import run_streaming_monitor
    from processors.publisher import Publisher
    run_streaming_monitor(config, Publisher(noop=args.noop), verbose=args.verbose)
    return 0


def run_check(args) -> int:
    config = load_config(args.config)
    for account in config.accounts:
        print(describe_account(account))
    if not config.accounts:
        print("Error: no usable accounts in config")
        return 1
    return 0 if check_credentials(config.accounts) else 1


def run_attribute(args) -> int:
    try:
        addr = parse_address(args.address)
    except InvalidAddress as e:
        print(f"Error: {e}")
        return 1

    config = load_config(args.config)
    accounts = config.accounts
    if args.account:
        account = find_account(config, args.account)
        if account is None:
            print(f"Error: no account named '{args.account}'")
            return 1
        accounts = [account]

    for account in accounts:
        if account.ranges is None:
            continue
        organizations = account.ranges.attribute(addr)
        print(f"{account}: {', '.join(organizations) if organizations else 'no match'}")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Attribute anonymous wiki edits to organizations and post them",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Stream edits and post statuses for every configured account
  python main.py monitor

  # Print statuses without posting anything
  python main.py --verbose monitor --noop

  # Check the config and publishing credentials
  python main.py --config config.json check

  # See which organizations an address is attributed to
  python main.py attribute 143.231.0.1
        """
    )
    parser.add_argument('--config', default=CONFIG_FILE, help=f'Config file (default: {CONFIG_FILE})')
    parser.add_argument('--log-file', default=LOG_FILE, help=f'Log file, empty to disable (default: {LOG_FILE})')
    parser.add_argument('--verbose', action='store_true', help='Show debug output on the console')

    subparsers = parser.add_subparsers(dest='mode', help='Operating mode', required=True)

    monitor_parser = subparsers.add_parser(
        'monitor',
        help='Real-time monitoring mode',
        description='Continuously monitor the edit stream and post attributed edits'
    )
    monitor_parser.add_argument('--noop', action='store_true', help='Render statuses but do not post them')
    monitor_parser.add_argument('--skip-check', action='store_true',
                                help='Do not verify publishing credentials at startup')

    subparsers.add_parser(
        'check',
        help='Validate config and credentials',
        description='Load the config, summarize each account and verify its credentials'
    )

    attribute_parser = subparsers.add_parser(
        'attribute',
        help='Attribute an address',
        description='Print the organizations each account attributes an address to'
    )
    attribute_parser.add_argument('address', help='IPv4 or IPv6 address')
    attribute_parser.add_argument('--account', help='Only check the named account')

    args = parser.parse_args(argv)
    setup_logging(args.log_file, verbose=args.verbose)

    handlers = {
        'monitor': run_monitor,
        'check': run_check,
        'attribute': run_attribute,
    }
    try:
        return handlers[args.mode](args)
    except ConfigError as e:
        logging.error(f"Configuration error: {e}")
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
