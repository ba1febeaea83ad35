"""Shared test fixtures for Claude Usage Monitor."""

import sys
from pathlib import Path

import pytest


@pytest.fixture(scope="session")
def qapp():
    """Create a QCoreApplication for tests that need the Qt event loop."""
    from PySide6.QtCore import QCoreApplication

    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication(sys.argv or ["test"])
    yield app


@pytest.fixture
def settings(qapp, tmp_path):
    """Isolated QSettings backed by an ini file under tmp_path."""
    from PySide6.QtCore import QSettings
    QSettings.setDefaultFormat(QSettings.IniFormat)
    QSettings.setPath(QSettings.IniFormat, QSettings.UserScope, str(tmp_path / "config"))
    return QSettings(str(tmp_path / "config" / "monitor.ini"), QSettings.IniFormat)


@pytest.fixture
def config(settings):
    from claude_usage_monitor.services.config_manager import ConfigManager
    return ConfigManager(settings=settings)


@pytest.fixture
def claude_dir(tmp_path) -> Path:
    """A temporary ~/.claude directory."""
    path = tmp_path / ".claude"
    path.mkdir()
    return path


@pytest.fixture
def projects_dir(claude_dir) -> Path:
    """A temporary projects root with one project directory."""
    projects = claude_dir / "projects"
    (projects / "-home-wiz-projects-myapp").mkdir(parents=True)
    return projects


@pytest.fixture
def project_dir(projects_dir) -> Path:
    return projects_dir / "-home-wiz-projects-myapp"


@pytest.fixture
def stats_path(claude_dir) -> Path:
    return claude_dir / "stats-cache.json"


@pytest.fixture
def account_path(tmp_path) -> Path:
    return tmp_path / ".claude.json"
