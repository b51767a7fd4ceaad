"""
Image Handler

Utilities for downloading images. Supports only plain GET requests for image files specified
by URL, with no expectation of authentication. Finding out *which* images to download is the
job of the spotlight handler.

Downloads are written atomically. The body is streamed into a temporary sibling file
("<destination>.part") and only renamed onto the destination once the whole body has arrived
and, when the server declared a Content-Length, the byte count matches. Whatever goes wrong,
the temporary file is removed and the destination is never left half written.
"""

import os
from pathlib import Path
from time import monotonic
from typing import Optional

import requests

from spotlightdl import USER_AGENT

DOWNLOAD_TIMEOUT = 60  # seconds
CHUNK_SIZE = 64 * 1024
PART_SUFFIX = ".part"


class ImageDownloadError(Exception):
    """
    Raised when an image download is unsuccessful.
    """

    pass


class ImageStatusError(ImageDownloadError):
    """
    Raised when the image server answers with anything other than 200 OK.
    """

    def __init__(self, status_code: int, url: str = ""):
        self.status_code = status_code
        self.url = url
        super().__init__(f"http {status_code} for {url}")


class SizeMismatchError(ImageDownloadError):
    """
    Raised when the number of bytes written differs from the declared Content-Length.
    """

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"size mismatch: expected {expected} bytes, got {actual}")


class DownloadTimeoutError(ImageDownloadError):
    """
    Raised when the whole download takes longer than DOWNLOAD_TIMEOUT. requests' own timeout
    only bounds each read, so a server trickling bytes would otherwise never be cut off.
    """

    pass


def part_path(dest_path: Path) -> Path:
    """Temporary file used while downloading to dest_path."""

    return dest_path.with_name(dest_path.name + PART_SUFFIX)


def expected_length(headers) -> Optional[int]:
    """
    Content-Length declared by the server, or None when there is nothing to check against.

    Requests transparently decodes gzip/deflate bodies, in which case Content-Length describes the
    encoded body and not the bytes we write, so no check is possible.
    """

    if headers.get("Content-Encoding", "identity").lower() != "identity":
        return None

    try:
        length = int(headers.get("Content-Length"))
    except (TypeError, ValueError):
        return None

    return length if length > 0 else None


def download_image(url: str, dest_path) -> Path:
    """
    Download the image at url to dest_path and return the destination path.

    Raises an ImageDownloadError (or subclass) if anything goes wrong. In that case neither
    dest_path nor its temporary file exist afterward (unless dest_path existed beforehand).
    Existing files are overwritten; callers that want to skip existing files check first.
    """

    dest_path = Path(dest_path)
    tmp_path = part_path(dest_path)
    deadline = monotonic() + DOWNLOAD_TIMEOUT
    expected = None

    try:
        r = requests.get(
            url,
            headers={"User-Agent": USER_AGENT},
            timeout=DOWNLOAD_TIMEOUT,
            stream=True,
        )

    except requests.exceptions.RequestException as error:
        raise ImageDownloadError(f"could not download {url}: {error}") from error

    try:
        if r.status_code != 200:
            raise ImageStatusError(r.status_code, url=url)

        expected = expected_length(r.headers)

        with open(tmp_path, "wb") as file:
            for chunk in r.iter_content(chunk_size=CHUNK_SIZE):
                file.write(chunk)
                if monotonic() > deadline:
                    raise DownloadTimeoutError(
                        f"download of {url} took longer than {DOWNLOAD_TIMEOUT}s"
                    )

        if expected is not None:
            actual = tmp_path.stat().st_size
            if actual != expected:
                raise SizeMismatchError(expected, actual)

        # rename is atomic on the same filesystem, and .part always lives next to dest_path
        os.replace(tmp_path, dest_path)

    except requests.exceptions.RequestException as error:
        # urllib3 enforces Content-Length itself and raises mid-stream on a short body
        if expected is not None and tmp_path.exists():
            actual = tmp_path.stat().st_size
            if actual != expected:
                raise SizeMismatchError(expected, actual) from error

        raise ImageDownloadError(f"download of {url} interrupted: {error}") from error

    except OSError as error:
        raise ImageDownloadError(f"could not save {dest_path}: {error}") from error

    finally:
        r.close()
        tmp_path.unlink(missing_ok=True)

    return dest_path
