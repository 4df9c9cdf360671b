"""
github-mirror-backup - Mirror backup tool for GitHub repositories

Mirror-clones every repository owned by a GitHub user, or belonging to an
organization, into a dated local backup directory.

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

__version__ = "1.0.0"
__author__ = "Derek"
__license__ = "Apache-2.0"
__description__ = "Mirror backup tool that clones every repository of a GitHub user or organization"

from .base import (
    AuthError,
    BackupTarget,
    CloneFailure,
    Cloner,
    ListingError,
    MirrorBackupError,
    NetworkError,
    ParseError,
    Repository,
    RunConfiguration,
    RunContext,
)
from .github_manager import GitHubManager
from .local_backup import GitMirrorCloner
from .main import MirrorBackupOrchestrator, main

__all__ = [
    "AuthError",
    "BackupTarget",
    "CloneFailure",
    "Cloner",
    "GitHubManager",
    "GitMirrorCloner",
    "ListingError",
    "MirrorBackupError",
    "MirrorBackupOrchestrator",
    "NetworkError",
    "ParseError",
    "Repository",
    "RunConfiguration",
    "RunContext",
    "main",
]
