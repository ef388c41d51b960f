"""
Shared utility functions
"""
import json
from datetime import datetime, timezone
from dateutil import parser
from core.address import InvalidAddress, parse_address


def is_ip_address(user: str) -> bool:
    """
    Check if a string is a valid IP address

    Args:
        user: String to check

    Returns:
        True if valid IP address, False otherwise
    """
    if not user or not isinstance(user, str):
        return False

    try:
        parse_address(user)
        return True
    except InvalidAddress:
        return False


def load_json(path: str):
    """
    Load a JSON document from a file

    Raises:
        OSError: if the file cannot be read
        ValueError: if the file is not valid JSON
    """
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def convert_timestamp(timestamp) -> str:
    """
    Convert an ISO or Unix timestamp to readable format

    Args:
        timestamp: ISO format string or seconds since the epoch

    Returns:
        Formatted timestamp string
    """
    if isinstance(timestamp, (int, float)):
        dt = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    else:
        dt = parser.isoparse(str(timestamp))
    return dt.strftime('%Y-%m-%d %H:%M:%S')
