import pytest

from wordpress_mcp.settings import ServerSettings, WordPressSettings


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path):
    # Keep a developer's .env out of the picture.
    monkeypatch.chdir(tmp_path)
    for name in (
        "WORDPRESS_SITE_URL",
        "WORDPRESS_USERNAME",
        "WORDPRESS_PASSWORD",
        "WORDPRESS_MCP_PORT",
        "WORDPRESS_MCP_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


def test_server_defaults():
    settings = ServerSettings()

    assert settings.host == "127.0.0.1"
    assert settings.port == 3000
    assert settings.sse_path == "/sse"
    assert settings.message_path == "/message"
    assert settings.log_level == "INFO"


def test_server_settings_from_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("WORDPRESS_MCP_PORT", "8080")
    monkeypatch.setenv("WORDPRESS_MCP_LOG_LEVEL", "DEBUG")

    settings = ServerSettings()

    assert settings.port == 8080
    assert settings.log_level == "DEBUG"


def test_wordpress_settings_from_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("WORDPRESS_SITE_URL", "https://blog.example.com")
    monkeypatch.setenv("WORDPRESS_USERNAME", "editor")
    monkeypatch.setenv("WORDPRESS_PASSWORD", "app pass")

    settings = WordPressSettings()

    assert settings.site_url == "https://blog.example.com"
    assert settings.username == "editor"
    assert settings.password is not None
    assert settings.password.get_secret_value() == "app pass"
    assert "app pass" not in repr(settings)


def test_wordpress_settings_are_optional():
    settings = WordPressSettings()

    assert settings.site_url is None
    assert settings.password is None


def test_dotenv_file(tmp_path):
    (tmp_path / ".env").write_text("WORDPRESS_SITE_URL=https://dotenv.example.com\nWORDPRESS_MCP_PORT=4000\n")

    assert WordPressSettings().site_url == "https://dotenv.example.com"
    assert ServerSettings().port == 4000
