"""
Auto-discovery of GitHub credentials from standard locations

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

import logging
import os
import subprocess
from typing import List, Optional

logger = logging.getLogger(__name__)


def _run_gh(args: List[str]) -> Optional[str]:
    try:
        result = subprocess.run(
            ["gh"] + args,
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (subprocess.TimeoutExpired, FileNotFoundError):
        return None

    if result.returncode == 0 and result.stdout.strip():
        return result.stdout.strip()
    return None


def get_github_token() -> Optional[str]:
    """
    Discover GitHub token from standard locations.

    Priority:
    1. GITHUB_TOKEN environment variable
    2. GH_TOKEN environment variable
    3. gh CLI auth token (via `gh auth token` command)

    Returns:
        GitHub token or None if not found
    """
    token = os.getenv("GITHUB_TOKEN")
    if token:
        logger.debug("[TOKEN] GitHub token found in GITHUB_TOKEN env var")
        return token

    token = os.getenv("GH_TOKEN")
    if token:
        logger.debug("[TOKEN] GitHub token found in GH_TOKEN env var")
        return token

    token = _run_gh(["auth", "token"])
    if token:
        logger.info("[TOKEN] GitHub token discovered from gh CLI")
    return token


def get_github_user() -> Optional[str]:
    """
    Discover the GitHub login to authenticate as.

    Priority:
    1. GITHUB_USER environment variable
    2. GITHUB_USERNAME environment variable
    3. gh CLI login (via `gh api user --jq .login`)
    """
    for var in ("GITHUB_USER", "GITHUB_USERNAME"):
        user = os.getenv(var)
        if user:
            logger.debug(f"[TOKEN] GitHub user found in {var} env var")
            return user

    user = _run_gh(["api", "user", "--jq", ".login"])
    if user:
        logger.info("[TOKEN] GitHub user discovered from gh CLI")
    return user
