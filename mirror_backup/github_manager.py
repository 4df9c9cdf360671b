"""
GitHub repository lister

Copyright 2025 HyperSec

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.
"""

import base64
import logging
import ssl
from typing import Any, Dict, List, Tuple

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.ssl_ import create_urllib3_context

from .base import (
    AuthError,
    NetworkError,
    ParseError,
    Repository,
    RunConfiguration,
)

PAGE_SIZE = 100


class TLSAdapter(HTTPAdapter):
    """HTTP adapter that refuses TLS versions below min_version"""

    def __init__(self, min_version: ssl.TLSVersion = ssl.TLSVersion.TLSv1_2, **kwargs):
        self.min_version = min_version
        super().__init__(**kwargs)

    def init_poolmanager(self, *args, **kwargs):
        context = create_urllib3_context()
        context.minimum_version = self.min_version
        kwargs["ssl_context"] = context
        return super().init_poolmanager(*args, **kwargs)


def basic_auth_header(user_name: str, credential: str) -> str:
    token = base64.b64encode(f"{user_name}:{credential}".encode("utf-8"))
    return f"Basic {token.decode('ascii')}"


class GitHubManager:
    """
    Lists the repositories of a user or an organization.

    Only the first page (100 repositories) is requested. Pagination links
    returned by the API are not followed, so larger accounts are truncated;
    a warning is logged when the API reports more pages.
    """

    def __init__(
        self,
        config: RunConfiguration,
        min_tls_version: ssl.TLSVersion = ssl.TLSVersion.TLSv1_2,
    ):
        self.config = config
        self.min_tls_version = min_tls_version
        self.logger = logging.getLogger(self.__class__.__name__)

        self.session = requests.Session()
        self.session.mount("https://", TLSAdapter(min_version=min_tls_version))
        self.session.headers.update(
            {
                "Authorization": basic_auth_header(
                    config.user_name, config.credential
                ),
                "Accept": "application/vnd.github+json",
                "User-Agent": "github-mirror-backup",
            }
        )

    def build_request(self) -> Tuple[str, Dict[str, Any]]:
        """Return the listing URL and query parameters for this configuration"""
        if self.config.organization_name:
            url = f"{self.config.api_url}/orgs/{self.config.organization_name}/repos"
            params = {"type": "all", "per_page": PAGE_SIZE, "page": 1}
        else:
            url = f"{self.config.api_url}/user/repos"
            params = {"affiliation": "owner", "per_page": PAGE_SIZE, "page": 1}
        return url, params

    def get_repositories(self) -> List[Repository]:
        url, params = self.build_request()
        if self.config.organization_name:
            self.logger.info(
                f"[CONFIG] Fetching repositories from GitHub organization: {self.config.organization_name}"
            )
        else:
            self.logger.info(
                f"[CONFIG] Fetching GitHub repositories owned by {self.config.user_name}"
            )

        try:
            response = self.session.get(url, params=params)
        except requests.RequestException as e:
            raise NetworkError(f"Could not reach {url}: {e}") from e

        if response.status_code in (401, 403):
            self.logger.error("GitHub authentication failed: Invalid or expired token")
            raise AuthError(
                f"Listing request rejected with HTTP {response.status_code}"
            )
        if response.status_code >= 400:
            self.logger.error(
                f"GitHub API request failed: {response.status_code} {response.text[:500]}"
            )
            raise NetworkError(
                f"Listing request failed with HTTP {response.status_code}",
                status_code=response.status_code,
            )

        if "next" in response.links:
            self.logger.warning(
                f"[LIMITATION] Listing is capped at {PAGE_SIZE} repositories; further pages are not fetched"
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise ParseError(f"Response body is not valid JSON: {e}") from e

        return self.parse_repositories(payload)

    @staticmethod
    def parse_repositories(payload: Any) -> List[Repository]:
        if not isinstance(payload, list):
            raise ParseError(
                f"Expected a JSON array of repositories, got {type(payload).__name__}"
            )

        repos = []
        for index, item in enumerate(payload):
            if not isinstance(item, dict):
                raise ParseError(f"Entry {index} is not a JSON object")
            missing = [k for k in ("full_name", "name", "size") if k not in item]
            if missing:
                raise ParseError(f"Entry {index} is missing {', '.join(missing)}")

            size = item["size"]
            # bool is an int subclass
            if isinstance(size, bool) or not isinstance(size, int):
                raise ParseError(f"Entry {index} has a non-integer size: {size!r}")
            if not isinstance(item["full_name"], str) or not isinstance(
                item["name"], str
            ):
                raise ParseError(f"Entry {index} has a non-string name")

            repos.append(
                Repository(full_name=item["full_name"], name=item["name"], size_kb=size)
            )
        return repos
