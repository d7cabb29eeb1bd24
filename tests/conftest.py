import pytest

from fakes import FakePlaywright


@pytest.fixture
def chromium_binary(tmp_path):
    """Stands in for Playwright's installed Chromium build."""
    binary = tmp_path / "ms-playwright" / "chromium" / "chrome"
    binary.parent.mkdir(parents=True)
    binary.write_text("")
    return binary


@pytest.fixture
def fake_playwright(chromium_binary):
    return FakePlaywright(chromium_binary)


@pytest.fixture
def home(tmp_path, monkeypatch):
    """Isolated home directory with no M2P_* overrides or user config file."""
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    monkeypatch.setenv("HOME", str(home_dir))
    monkeypatch.setenv("USERPROFILE", str(home_dir))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home_dir / ".config"))
    for name in ("M2P_OUTPUT_DIR", "M2P_RENDER_DELAY_MS", "M2P_LOAD_TIMEOUT_MS",
                 "M2P_BROWSER_PATH", "M2P_MERMAID_URL"):
        monkeypatch.delenv(name, raising=False)
    return home_dir
