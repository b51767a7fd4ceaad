"""
Spotlight Selection API - Fetch and Parse

This module is a wrapper around the unauthenticated Windows Spotlight image selection API.
One GET request returns a small rotating batch of "ad" items. Each item is itself a JSON document
encoded as a string inside the outer JSON response, e.g.

    {"batchrsp": {"items": [{"item": "{\"ad\": {\"landscapeImage\": {\"asset\": \"https://...\"}}}"}]}}

Only landscape images are of interest. Items that are malformed, have no ad, have no landscape
image, or point to an insecure or empty asset are dropped quietly since the catalog is large and
noisy. A response that can't be decoded at all is a different matter: it means the API contract
changed and is raised as a BatchDecodeError.

Downloading the images themselves is handled by the image handler. This file is limited to
constructing well-formed requests and turning responses into ImageDescriptors.
"""

import json
from dataclasses import dataclass
from functools import wraps
from pathlib import PurePosixPath
from time import monotonic
from typing import Optional
from urllib.parse import urlencode, urlparse

import requests

from spotlightdl import USER_AGENT

PLACEMENT_ID = "88000820"
BATCH_COUNT = 4
FETCH_TIMEOUT = 20  # seconds
CHUNK_SIZE = 16 * 1024
DEFAULT_EXTENSION = ".jpg"
SECURE_SCHEME = "https://"


class SpotlightFetchError(Exception):
    """
    Base class for failures of a single request/response cycle against the selection API.
    """

    pass


class FetchTransportError(SpotlightFetchError):
    """
    Raised when the request could not be completed (connection refused, DNS, timeout...).
    """

    pass


class FetchStatusError(SpotlightFetchError):
    """
    Raised when the API answers with anything other than 200 OK.
    """

    def __init__(self, status_code: int, url: str = ""):
        self.status_code = status_code
        self.url = url
        super().__init__(f"selection API returned http {status_code}")


class BatchDecodeError(SpotlightFetchError):
    """
    Raised when the outer response body is not the JSON envelope we expect.
    """

    pass


@dataclass(frozen=True)
class ImageDescriptor:
    """
    One candidate wallpaper. The url is the identity of the image; two descriptors
    with the same url are the same image no matter what the other fields say.
    """

    url: str
    file_name: str
    title: str = ""
    copyright: str = ""


@dataclass(frozen=True)
class ItemResult:
    """
    Outcome of parsing a single batch item. Either 'image' is set, or it is None and
    'reason' says why the item was dropped.
    """

    image: Optional[ImageDescriptor] = None
    reason: str = ""

    @property
    def dropped(self) -> bool:
        return self.image is None


def base_url(func):
    """
    Use this decorator to inject the base url into each request builder. That way should the url
    change in the future it can be done in one place.
    """

    base_url = "https://fd.api.iris.microsoft.com/v4/api/selection"

    @wraps(func)
    def wrapper(*args, **kwargs):
        return func(base_url=base_url, *args, **kwargs)

    return wrapper


@base_url
def build_api_url(country: str, locale: str, *args, **kwargs) -> str:
    """
    Build the selection API url for a country (e.g. "US") and locale (e.g. "en-US").
    """

    base_url: str = kwargs.get("base_url")

    query = urlencode(
        {
            "placement": PLACEMENT_ID,
            "bcnt": BATCH_COUNT,
            "country": country,
            "locale": locale,
            "fmt": "json",
        }
    )
    return f"{base_url}?{query}"


def first_non_empty(first: str, second: str) -> str:
    """Return the first of two strings that isn't blank, trimmed."""

    if first and first.strip():
        return first.strip()
    return (second or "").strip()


def file_name_from_url(url: str) -> str:
    """
    Use the final path segment of url as a file name. Query strings are dropped and a default
    extension is added when the segment has none, e.g.

        https://example.com/img123.jpg?foo=1  -> img123.jpg
        https://example.com/a/b/img456        -> img456.jpg

    Returns an empty string if the url has no usable path segment.
    """

    try:
        path = urlparse(url).path
    except ValueError:
        return ""

    name = PurePosixPath(path).name.split("?", 1)[0]
    if name in ("", ".", ".."):
        return ""

    if "." not in name:
        name += DEFAULT_EXTENSION

    return name


def parse_item(raw) -> ItemResult:
    """
    Parse one inner item string into an ItemResult. Never raises.
    """

    if not isinstance(raw, str):
        return ItemResult(reason="malformed item")

    try:
        envelope = json.loads(raw)
    except json.JSONDecodeError:
        return ItemResult(reason="malformed item")

    if not isinstance(envelope, dict):
        return ItemResult(reason="malformed item")

    ad = envelope.get("ad")
    if not isinstance(ad, dict):
        return ItemResult(reason="no ad")

    landscape = ad.get("landscapeImage")
    if not isinstance(landscape, dict):
        return ItemResult(reason="no landscape image")

    asset = landscape.get("asset")
    asset = asset.strip() if isinstance(asset, str) else ""
    if not asset.startswith(SECURE_SCHEME):
        return ItemResult(reason="insecure or empty asset")

    copyright = ad.get("copyright")

    return ItemResult(
        image=ImageDescriptor(
            url=asset,
            file_name=file_name_from_url(asset),
            title=first_non_empty(ad.get("iconHoverText") or "", ad.get("title") or ""),
            copyright=copyright if isinstance(copyright, str) else "",
        )
    )


def dedupe(images) -> list[ImageDescriptor]:
    """
    Drop images with an empty url and any later repeat of a url already seen in this sequence.
    Order of first occurrences is kept.
    """

    seen = set()
    unique = []

    for image in images:
        if not image.url or image.url in seen:
            continue
        seen.add(image.url)
        unique.append(image)

    return unique


def parse_batch(content: bytes) -> list[ImageDescriptor]:
    """
    Decode a raw selection API response into a list of landscape ImageDescriptors.

    Raises BatchDecodeError if the outer envelope is broken. Individual bad items are skipped.
    """

    try:
        body = json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as error:
        raise BatchDecodeError(f"could not decode selection API response: {error}") from error

    if not isinstance(body, dict):
        raise BatchDecodeError("selection API response is not a JSON object")

    batch = body.get("batchrsp")
    if batch is None:
        batch = {}
    if not isinstance(batch, dict):
        raise BatchDecodeError("selection API response has an invalid 'batchrsp' field")

    items = batch.get("items")
    if items is None:
        items = []
    if not isinstance(items, list):
        raise BatchDecodeError("selection API response has an invalid 'items' field")

    results = (
        parse_item(item.get("item") if isinstance(item, dict) else None)
        for item in items
    )
    return dedupe(result.image for result in results if not result.dropped)


def fetch_images(country: str, locale: str) -> list[ImageDescriptor]:
    """
    Ask the selection API for one batch of images. Errors are raised to the caller as
    SpotlightFetchError subclasses and are not retried here.

    FETCH_TIMEOUT bounds the whole exchange, not just each read.
    """

    url = build_api_url(country=country, locale=locale)
    deadline = monotonic() + FETCH_TIMEOUT

    try:
        r = requests.get(
            url, headers={"User-Agent": USER_AGENT}, timeout=FETCH_TIMEOUT, stream=True
        )

    except requests.exceptions.RequestException as error:
        raise FetchTransportError(f"could not reach selection API: {error}") from error

    try:
        if r.status_code != 200:
            raise FetchStatusError(r.status_code, url=url)

        chunks = []
        for chunk in r.iter_content(chunk_size=CHUNK_SIZE):
            chunks.append(chunk)
            if monotonic() > deadline:
                raise FetchTransportError(
                    f"selection API took longer than {FETCH_TIMEOUT}s to answer"
                )

    except requests.exceptions.RequestException as error:
        raise FetchTransportError(f"selection API response interrupted: {error}") from error

    finally:
        r.close()

    return parse_batch(b"".join(chunks))
