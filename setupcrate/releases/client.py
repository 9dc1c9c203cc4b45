"""
GitHub release listing client.

Releases are fetched page by page, newest first, following the ``Link``
header GitHub returns. Pages are produced lazily so a caller that finds what
it needs on the first page never triggers a request for the second.
"""

import logging
from typing import Iterator, List, Optional

import requests
from requests.exceptions import RequestException

from setupcrate.core.exceptions import ReleaseListingError
from setupcrate.releases.models import Release

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_PER_PAGE = 100
USER_AGENT = "setup-crate"


class GitHubReleaseClient:
    """
    Client for the GitHub releases API.

    Example:
        >>> client = GitHubReleaseClient(token=os.environ.get("GITHUB_TOKEN"))
        >>> for page in client.iter_release_pages("rust-lang", "mdBook"):
        ...     print([release.tag_name for release in page])
    """

    def __init__(
        self,
        token: Optional[str] = None,
        api_url: str = DEFAULT_API_URL,
        per_page: int = DEFAULT_PER_PAGE,
        timeout: int = 30,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client.

        Args:
            token: GitHub token; without one requests are rate limited harder
            api_url: API base URL (GitHub Enterprise Server uses its own)
            per_page: Releases requested per page (GitHub caps this at 100)
            timeout: Request timeout in seconds
            session: Optional requests session to reuse
        """
        self.api_url = api_url.rstrip("/")
        self.per_page = per_page
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
                "User-Agent": USER_AGENT,
            }
        )
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def iter_release_pages(self, owner: str, repo: str) -> Iterator[List[Release]]:
        """
        Yield pages of releases for a repository, newest first.

        Args:
            owner: Repository owner
            repo: Repository name

        Yields:
            One list of releases per API page

        Raises:
            ReleaseListingError: If a page cannot be fetched or parsed
        """
        url: Optional[str] = f"{self.api_url}/repos/{owner}/{repo}/releases"
        params: Optional[dict] = {"per_page": self.per_page}
        page_number = 1

        while url:
            logger.debug(f"Fetching releases page {page_number} for {owner}/{repo}")
            response = self._get(url, params)
            try:
                payload = response.json()
                releases = [Release.from_api(item) for item in payload]
            except (ValueError, KeyError, TypeError) as e:
                raise ReleaseListingError(
                    f"Unexpected release listing for {owner}/{repo}: {e}"
                ) from e

            yield releases

            # The next link already carries the query string.
            url = response.links.get("next", {}).get("url")
            params = None
            page_number += 1

    def _get(self, url: str, params: Optional[dict]) -> requests.Response:
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except RequestException as e:
            raise ReleaseListingError(f"Failed to list releases from {url}: {e}") from e
        return response


__all__ = [
    "DEFAULT_API_URL",
    "GitHubReleaseClient",
]
