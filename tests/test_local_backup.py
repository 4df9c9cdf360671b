"""
Tests for local_backup module

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
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from mirror_backup.base import CloneFailure, Cloner
from mirror_backup.local_backup import GitMirrorCloner


class TestGitMirrorClonerInit:
    """Tests for GitMirrorCloner initialisation"""

    def test_is_cloner(self):
        """Test GitMirrorCloner implements the Cloner capability"""
        assert isinstance(GitMirrorCloner(), Cloner)

    def test_default_executable(self):
        """Test git is looked up on PATH by default"""
        assert GitMirrorCloner().git_executable == "git"

    def test_custom_executable(self):
        """Test a custom git binary can be configured"""
        assert GitMirrorCloner("/opt/git/bin/git").git_executable == "/opt/git/bin/git"


class TestBuildCommand:
    """Tests for the git command line"""

    def test_mirror_clone_command(self):
        """Test the command requests a full mirror clone"""
        cmd = GitMirrorCloner().build_command(
            "git@github.com:o/a.git", Path("/backups/2024-01-01/a")
        )
        assert cmd == [
            "git",
            "clone",
            "--mirror",
            "git@github.com:o/a.git",
            "/backups/2024-01-01/a",
        ]


class TestMirrorClone:
    """Tests for mirror_clone"""

    def test_successful_clone(self):
        """Test a zero exit status succeeds and creates the parent directory"""
        with tempfile.TemporaryDirectory() as tmpdir:
            destination = Path(tmpdir) / "2024-01-01" / "a"
            completed = subprocess.CompletedProcess(args=[], returncode=0, stderr="")

            with patch(
                "mirror_backup.local_backup.subprocess.run", return_value=completed
            ) as run:
                GitMirrorCloner().mirror_clone("git@github.com:o/a.git", destination)

            assert destination.parent.is_dir()
            args, kwargs = run.call_args
            assert args[0] == [
                "git",
                "clone",
                "--mirror",
                "git@github.com:o/a.git",
                str(destination),
            ]
            assert kwargs["stdout"] == subprocess.DEVNULL
            assert kwargs["stderr"] == subprocess.PIPE

    def test_failed_clone_raises(self):
        """Test a non-zero exit status raises CloneFailure with details"""
        with tempfile.TemporaryDirectory() as tmpdir:
            completed = subprocess.CompletedProcess(
                args=[], returncode=128, stderr="fatal: repository not found"
            )

            with patch(
                "mirror_backup.local_backup.subprocess.run", return_value=completed
            ):
                with pytest.raises(CloneFailure) as exc_info:
                    GitMirrorCloner().mirror_clone(
                        "git@github.com:o/a.git", Path(tmpdir) / "a"
                    )

        assert exc_info.value.returncode == 128
        assert "repository not found" in exc_info.value.stderr

    def test_stderr_is_truncated(self):
        """Test captured stderr is limited to 500 characters"""
        with tempfile.TemporaryDirectory() as tmpdir:
            completed = subprocess.CompletedProcess(
                args=[], returncode=1, stderr="x" * 2000
            )

            with patch(
                "mirror_backup.local_backup.subprocess.run", return_value=completed
            ):
                with pytest.raises(CloneFailure) as exc_info:
                    GitMirrorCloner().mirror_clone("git@github.com:o/a.git", Path(tmpdir) / "a")

        assert len(exc_info.value.stderr) == 500

    def test_missing_git_raises(self):
        """Test an unavailable git binary raises CloneFailure"""
        with tempfile.TemporaryDirectory() as tmpdir:
            cloner = GitMirrorCloner(git_executable=str(Path(tmpdir) / "no-such-git"))

            with pytest.raises(CloneFailure) as exc_info:
                cloner.mirror_clone("git@github.com:o/a.git", Path(tmpdir) / "a")

        assert "not found" in str(exc_info.value)
