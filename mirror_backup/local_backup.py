"""
Local filesystem mirror cloning

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

import subprocess
from pathlib import Path

from .base import CloneFailure, Cloner


class GitMirrorCloner(Cloner):
    def __init__(self, git_executable: str = "git"):
        """
        Initialize the git-backed cloner
        Args:
            git_executable: git binary to invoke (name on PATH or absolute path)
        """
        super().__init__()
        self.git_executable = git_executable

    def build_command(self, remote_url: str, destination: Path) -> list:
        return [self.git_executable, "clone", "--mirror", remote_url, str(destination)]

    def mirror_clone(self, remote_url: str, destination: Path) -> None:
        """
        Mirror-clone a remote into destination (all refs, no working tree)
        Args:
            remote_url: SSH remote, e.g. git@github.com:owner/name.git
            destination: Directory to create the bare mirror in
        Raises:
            CloneFailure: git is missing or exited non-zero
        """
        destination = Path(destination)
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CloneFailure(
                remote_url, f"cannot create {destination.parent}: {e}"
            ) from e

        clone_cmd = self.build_command(remote_url, destination)
        self.logger.debug(f"[BACKUP] Running: {' '.join(clone_cmd)}")

        # Use DEVNULL for stdout to avoid memory buffering of git progress output
        try:
            result = subprocess.run(
                clone_cmd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                text=True,
            )
        except FileNotFoundError as e:
            raise CloneFailure(
                remote_url, f"git executable not found: {self.git_executable}"
            ) from e

        if result.returncode != 0:
            stderr_truncated = result.stderr[:500] if result.stderr else ""
            self.logger.debug(
                f"[ERROR] Clone failed for {remote_url}: {stderr_truncated}"
            )
            raise CloneFailure(
                remote_url,
                f"git clone exited with code {result.returncode}",
                returncode=result.returncode,
                stderr=stderr_truncated,
            )
