from __future__ import annotations

from pathlib import Path

import pytest

from git_action_runner.constants import PROMPT_DIR_ENV


@pytest.fixture
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point `~` at a temp dir so prompt files never touch the real config."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv(PROMPT_DIR_ENV, raising=False)
    return home
