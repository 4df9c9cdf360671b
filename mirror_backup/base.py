"""
Base classes for repository mirroring

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
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from time import monotonic
from typing import List, Optional


class MirrorBackupError(Exception):
    """Base class for all backup errors"""


class ListingError(MirrorBackupError):
    """Repository listing failed; no repositories can be backed up"""


class AuthError(ListingError):
    pass


class NetworkError(ListingError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ParseError(ListingError):
    pass


class CloneFailure(MirrorBackupError):
    def __init__(
        self,
        remote_url: str,
        message: str,
        returncode: Optional[int] = None,
        stderr: str = "",
    ):
        super().__init__(f"{remote_url}: {message}")
        self.remote_url = remote_url
        self.returncode = returncode
        self.stderr = stderr


@dataclass(frozen=True)
class Repository:
    full_name: str
    name: str
    size_kb: int


@dataclass(frozen=True)
class RunConfiguration:
    user_name: str
    credential: str = field(repr=False)
    backup_directory: Path
    organization_name: Optional[str] = None
    host: str = "github.com"
    stop_on_error: bool = False
    report_failures: bool = False
    workers: int = 1

    @property
    def api_url(self) -> str:
        return f"https://api.{self.host}"

    def web_url(self, repo: Repository) -> str:
        return f"https://{self.host}/{repo.full_name}"

    def remote_url(self, repo: Repository) -> str:
        return f"git@{self.host}:{repo.full_name}.git"


@dataclass(frozen=True)
class BackupTarget:
    repository: Repository
    destination_path: Path

    @classmethod
    def for_repository(cls, repo: Repository, backup_directory: Path) -> "BackupTarget":
        return cls(repository=repo, destination_path=Path(backup_directory) / repo.name)


@dataclass
class RunContext:
    """Per-run state shared by the lister and the orchestrator"""

    config: RunConfiguration
    started_at: float = field(default_factory=monotonic)
    attempted: int = 0
    failed: List[str] = field(default_factory=list)

    def elapsed_seconds(self) -> int:
        return int(monotonic() - self.started_at)


class Cloner(ABC):
    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def mirror_clone(self, remote_url: str, destination: Path) -> None:
        """Mirror-clone remote_url into destination, raising CloneFailure on error"""
        pass
