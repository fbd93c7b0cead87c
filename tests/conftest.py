"""Root conftest: keep settings and logs out of the real home directory."""

from __future__ import annotations

from unittest.mock import patch

import pytest


@pytest.fixture(autouse=True)
def isolated_home(tmp_path):
    config_file = tmp_path / "config" / "config.toml"
    log_root = tmp_path / "logs"
    with patch("sourcetables.settings._CONFIG_FILE", config_file), patch(
        "sourcetables.querylog._LOG_ROOT", log_root
    ):
        yield tmp_path
