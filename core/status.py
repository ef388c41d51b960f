"""
Status message rendering within a character budget
"""
import re
from config.settings import SHORT_URL_PLACEHOLDER, STATUS_BUDGET

PLACEHOLDER_PATTERN = re.compile(r"\{(name|url|page)\}")


def render_template(template: str, name: str, url: str, page: str) -> str:
    """
    Substitute {name}, {url} and {page} in a template

    Substitution is a single pass: other brace text stays literal and
    substituted values are not scanned again.
    """
    values = {'name': name, 'url': url, 'page': page}
    return PLACEHOLDER_PATTERN.sub(lambda m: values[m.group(1)], template)


def measure_length(template: str, name: str, placeholder_url: str, page: str) -> int:
    """Length of the rendered status with the URL counted at placeholder width"""
    return len(render_template(template, name, placeholder_url, page))


def render_status(template: str, name: str, page: str, url: str,
                  budget: int = STATUS_BUDGET,
                  placeholder_url: str = SHORT_URL_PLACEHOLDER) -> str:
    """
    Render a status, shortening the page title if it would exceed the budget

    Args:
        template: Status template using {name}, {url} and {page}
        name: Organization or editor name
        page: Edited page title (the only part that gets truncated)
        url: Real diff URL placed in the final status
        budget: Maximum status length as counted by the publishing surface
        placeholder_url: Stand-in with the width of a shortened link

    Returns:
        Rendered status text
    """
    length = measure_length(template, name, placeholder_url, page)
    if length > budget:
        # One extra character of slack beyond the measured overflow
        excess = length - budget
        page = page[:max(len(page) - (excess + 1), 0)]
    return render_template(template, name, url, page)
