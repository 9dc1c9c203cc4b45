"""
Release asset downloads.

Assets are streamed to disk in chunks. Connection errors and timeouts are
retried with exponential backoff; an HTTP error status is not, since asking
again for a missing or forbidden asset gives the same answer.
"""

import logging
import time
from pathlib import Path
from typing import Callable, Optional, Union

import requests
from requests.exceptions import RequestException

from setupcrate.core.exceptions import DownloadError

logger = logging.getLogger(__name__)

USER_AGENT = "setup-crate"
CHUNK_SIZE = 64 * 1024

# Called with (bytes written so far, total bytes or 0 when unknown).
ProgressCallback = Callable[[int, int], None]


def download_file(
    url: str,
    destination: Union[str, Path],
    progress_callback: Optional[ProgressCallback] = None,
    timeout: int = 30,
    max_retries: int = 3,
    session: Optional[requests.Session] = None,
) -> Path:
    """
    Download url to destination, following redirects.

    Args:
        url: Asset URL (GitHub redirects these to its CDN)
        destination: File to write; parent directories are created
        progress_callback: Optional per-chunk progress hook
        timeout: Connect/read timeout in seconds
        max_retries: Total attempts for transport failures
        session: requests session to use (default: module-level requests)

    Returns:
        The destination path

    Raises:
        DownloadError: On an HTTP error status, or when every attempt failed
        ValueError: If url is empty

    Example:
        >>> download_file(asset.download_url, work_dir / asset.name)
    """
    if not url:
        raise ValueError("URL cannot be empty")

    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)
    http = session or requests

    attempt = 0
    while True:
        attempt += 1
        try:
            _stream_to_file(http, url, destination, progress_callback, timeout)
            return destination
        except requests.HTTPError as e:
            destination.unlink(missing_ok=True)
            raise DownloadError(f"Failed to download {url}: {e}") from e
        except RequestException as e:
            destination.unlink(missing_ok=True)
            if attempt >= max_retries:
                raise DownloadError(
                    f"Download of {url} failed after {max_retries} attempts: {e}"
                ) from e
            delay = 2 ** (attempt - 1)
            logger.warning(f"Download attempt {attempt} for {url} failed ({e}), retrying in {delay}s")
            time.sleep(delay)


def _stream_to_file(
    http,
    url: str,
    destination: Path,
    progress_callback: Optional[ProgressCallback],
    timeout: int,
) -> None:
    logger.debug(f"Downloading {url} to {destination}")

    with http.get(
        url,
        headers={"User-Agent": USER_AGENT},
        stream=True,
        timeout=timeout,
        allow_redirects=True,
    ) as response:
        response.raise_for_status()
        total = int(response.headers.get("Content-Length") or 0)
        written = 0

        with open(destination, "wb") as f:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if not chunk:
                    continue
                f.write(chunk)
                written += len(chunk)
                if progress_callback:
                    progress_callback(written, total)

    logger.debug(f"Downloaded {written} bytes from {url}")


__all__ = [
    "ProgressCallback",
    "download_file",
]
