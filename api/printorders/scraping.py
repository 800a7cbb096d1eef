import logging
import re
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup

from .errors import BadRequestError

logger = logging.getLogger(__name__)

TIMEOUT = 10.0
LOCATION_WORDS = ("location", "address")

# first match wins
LOGO_SELECTORS = (
    ('meta[property="og:logo"]', "content"),
    ('meta[property="og:image"]', "content"),
    ('link[rel="apple-touch-icon"]', "href"),
    ('link[rel="shortcut icon"]', "href"),
    ('link[rel="icon"]', "href"),
    ('img[src*="logo" i]', "src"),
    ('img[class*="logo" i]', "src"),
    ("header img", "src"),
)


def _find_logo(soup: BeautifulSoup):
    for selector, attr in LOGO_SELECTORS:
        for tag in soup.select(selector):
            value = (tag.get(attr) or "").strip()
            if value:
                return value
    return None


def _location_blocks(soup: BeautifulSoup):
    found = []
    for el in soup.find_all(["p", "div"]):
        text = re.sub(r"\s\s+", " ", el.get_text(" ")).strip()
        if not any(word in text.lower() for word in LOCATION_WORDS):
            continue
        if 10 < len(text) < 200 and text not in found:
            found.append(text)
    return found


def extract_brand_data(html: str, base_url: str) -> dict:
    soup = BeautifulSoup(html, "html.parser")
    title = soup.title.get_text().strip() if soup.title else ""
    if not title:
        og_title = soup.find("meta", property="og:title")
        title = (og_title.get("content") or "").strip() if og_title else ""
    logo = _find_logo(soup)
    return {
        "title": title,
        "logo_url": urljoin(base_url, logo) if logo else None,
        "locations": _location_blocks(soup),
    }


def scrape_brand_site(url: str) -> dict:
    if not url.lower().startswith(("http://", "https://")):
        raise BadRequestError("URL must start with http:// or https://")
    try:
        resp = requests.get(url, timeout=TIMEOUT, headers={"User-Agent": "print-orders/1.0"})
        resp.raise_for_status()
    except requests.RequestException as exc:
        logger.warning("scrape failed for %s: %s", url, exc)
        raise BadRequestError(f"Failed to fetch URL: {exc}")
    return extract_brand_data(resp.text, resp.url or url)
