"""Tests for container CLI discovery."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

from containerwatch.runtime import candidate_paths, find_container_cli


class TestCandidatePaths:
    def test_fixed_search_order(self, tmp_path):
        assert candidate_paths(tmp_path) == [
            Path("/usr/local/bin/container"),
            Path("/opt/homebrew/bin/container"),
            Path("/usr/bin/container"),
            tmp_path / "bin" / "container",
            tmp_path / ".local" / "bin" / "container",
        ]

    def test_defaults_to_user_home(self, tmp_path):
        with patch("containerwatch.runtime.Path.home", return_value=tmp_path):
            paths = candidate_paths()
        assert paths[-1] == tmp_path / ".local" / "bin" / "container"


class TestFindContainerCli:
    def _make(self, path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("#!/bin/sh\n")
        return path

    def test_returns_first_existing(self, tmp_path):
        candidates = candidate_paths(tmp_path / "home")
        user_bin = self._make(tmp_path / "home" / "bin" / "container")
        self._make(tmp_path / "home" / ".local" / "bin" / "container")
        # system locations may or may not exist on the test host; strip them
        assert find_container_cli(candidates[3:]) == str(user_bin)

    def test_earlier_candidate_wins(self, tmp_path):
        first = self._make(tmp_path / "a" / "container")
        self._make(tmp_path / "b" / "container")
        assert find_container_cli([first, tmp_path / "b" / "container"]) == str(first)

    def test_skips_missing_candidates(self, tmp_path):
        present = self._make(tmp_path / "b" / "container")
        assert find_container_cli([tmp_path / "a" / "container", present]) == str(present)

    def test_none_found(self, tmp_path):
        assert find_container_cli([tmp_path / "nope" / "container"]) is None

    def test_empty_candidate_list(self):
        assert find_container_cli([]) is None

    def test_default_candidates(self, tmp_path):
        cli = self._make(tmp_path / ".local" / "bin" / "container")
        with (
            patch("containerwatch.runtime.Path.home", return_value=tmp_path),
            patch("containerwatch.runtime.SYSTEM_CANDIDATES", ()),
        ):
            assert find_container_cli() == str(cli)
