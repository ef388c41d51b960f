"""
Screenshot capture for wiki diff pages
"""
import os
import logging
import traceback
from datetime import datetime
from playwright.sync_api import sync_playwright
from config.settings import (
    SCREENSHOTS_DIR, DIFF_SELECTOR, SCREENSHOT_VIEWPORT, SCREENSHOT_CLIP, PAGE_LOAD_TIMEOUT
)


def sanitize_filename(filename: str) -> str:
    """Remove or replace invalid filename characters"""
    invalid_chars = '<>:"/\\|?*'
    for char in invalid_chars:
        filename = filename.replace(char, '_')
    return filename


def screenshot_path(title: str, when: datetime = None) -> str:
    """Build a dated screenshot path for an article title"""
    when = when or datetime.now()
    date_str = when.strftime('%Y-%m-%d')
    date_dir = os.path.join(SCREENSHOTS_DIR, date_str)
    os.makedirs(date_dir, exist_ok=True)

    # Titles can be long; keep filenames within filesystem limits
    safe_title = sanitize_filename(title)[:100]
    filename = f"{date_str} - {safe_title} - {when.strftime('%H%M%S%f')}.png"
    return os.path.join(date_dir, filename)


def take_screenshot(diff_url: str, title: str) -> str:
    """
    Take screenshot of a wiki diff page

    Args:
        diff_url: URL to the diff page
        title: Article title for filename

    Returns:
        Path to saved screenshot, or None if failed
    """
    filepath = screenshot_path(title)

    p = None
    browser = None
    context = None
    page = None

    try:
        logging.debug(f"Starting Playwright for {title}")
        p = sync_playwright().start()

        # Try Firefox first, fallback to Chromium
        try:
            browser = p.firefox.launch(headless=True)
            logging.debug(f"Firefox browser launched for {title}")
        except Exception as e:
            logging.debug(f"Firefox launch failed: {e}, trying Chromium")
            browser = p.chromium.launch(headless=True)
            logging.debug(f"Chromium browser launched for {title}")

        context = browser.new_context(viewport=SCREENSHOT_VIEWPORT)
        page = context.new_page()

        logging.debug(f"Loading URL: {diff_url}")
        page.goto(diff_url, wait_until="networkidle", timeout=PAGE_LOAD_TIMEOUT)

        # Capture just the diff table when the page has one
        diff_box = page.query_selector(DIFF_SELECTOR)
        if diff_box:
            diff_box.screenshot(path=filepath)
        else:
            logging.debug(f"No diff table found for {title}, capturing top of page")
            page.screenshot(path=filepath, clip=SCREENSHOT_CLIP)

        logging.debug(f"Screenshot saved successfully: {filepath}")
        return filepath

    except Exception as e:
        logging.warning(f"Error taking screenshot for {title}: {str(e)}")
        logging.debug(f"Full traceback: {traceback.format_exc()}")
        return None

    finally:
        # Explicit cleanup in reverse order
        for name, resource, close in (
            ("page", page, lambda: page.close()),
            ("context", context, lambda: context.close()),
            ("browser", browser, lambda: browser.close()),
            ("Playwright", p, lambda: p.stop()),
        ):
            if resource is None:
                continue
            try:
                close()
            except Exception as e:
                logging.debug(f"Error closing {name}: {e}")


def remove_screenshot(path: str):
    """Delete a screenshot once it is no longer needed"""
    if not path:
        return
    try:
        os.remove(path)
    except OSError as e:
        logging.debug(f"Could not remove screenshot {path}: {e}")
