from pathlib import Path

from fx_journal.config.app_config import load_app_config


def test_defaults_when_file_missing(tmp_path):
    config = load_app_config(tmp_path / "missing.toml")

    assert config.app.db_path == Path("data/fx_journal.sqlite")
    assert config.app.host == "127.0.0.1"
    assert config.app.port == 8000
    assert config.app.reload is False
    assert config.calendar.week_start == "sunday"
    assert config.logging.level == "INFO"


def test_values_from_file(tmp_path):
    path = tmp_path / "app.toml"
    path.write_text(
        """
[app]
db_path = "/tmp/journal.sqlite"
port = 9001

[calendar]
week_start = "Monday"

[logging]
level = "debug"
""",
        encoding="utf-8",
    )
    config = load_app_config(path)

    assert config.app.db_path == Path("/tmp/journal.sqlite")
    assert config.app.port == 9001
    assert config.calendar.week_start == "monday"
    assert config.logging.level == "DEBUG"


def test_bad_values_fall_back(tmp_path):
    path = tmp_path / "app.toml"
    path.write_text(
        """
[app]
port = "http"

[calendar]
week_start = "friday"

[logging]
level = "chatty"
""",
        encoding="utf-8",
    )
    config = load_app_config(path)

    assert config.app.port == 8000
    assert config.calendar.week_start == "sunday"
    assert config.logging.level == "INFO"


def test_env_var_selects_config(tmp_path):
    path = tmp_path / "custom.toml"
    path.write_text('[app]\nhost = "0.0.0.0"\n', encoding="utf-8")
    config = load_app_config(env={"FX_JOURNAL_CONFIG": str(path)})
    assert config.app.host == "0.0.0.0"
