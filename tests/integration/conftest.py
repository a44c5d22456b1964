import pytest

from click.testing import CliRunner


def pytest_collection_modifyitems(items):
    """Apply integration marker to all tests in this directory."""
    for item in items:
        if "/integration/" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def cli_env(isolated_config, tmp_path, monkeypatch):
    """Keep CLI runs away from the user's config and log files."""
    monkeypatch.setattr("presswatch.logging_config.DEFAULT_LOG_DIR", tmp_path / "logs")
    monkeypatch.setattr("presswatch.logging_config._logging_configured", True)
    return isolated_config


@pytest.fixture
def write_csv(tmp_path):
    """Write CSV text to a file and return its path."""

    def _write(text, name="export.csv"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write
