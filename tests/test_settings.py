import pytest

from history_engine.runtime.settings import HistorySettings, env_flag


def test_defaults_are_unbounded() -> None:
    settings = HistorySettings.from_env({})

    assert settings.capacity is None
    assert settings.clamp_navigation is False


@pytest.mark.parametrize("raw", ["", "none", "None", "0"])
def test_capacity_unbounded_spellings(raw: str) -> None:
    settings = HistorySettings.from_env({"HISTORY_ENGINE_CAPACITY": raw})

    assert settings.capacity is None


def test_capacity_and_clamp_from_env() -> None:
    settings = HistorySettings.from_env(
        {"HISTORY_ENGINE_CAPACITY": "25", "HISTORY_ENGINE_CLAMP_NAVIGATION": "on"}
    )

    assert settings == HistorySettings(capacity=25, clamp_navigation=True)


@pytest.mark.parametrize(
    "environ",
    [
        {"HISTORY_ENGINE_CAPACITY": "lots"},
        {"HISTORY_ENGINE_CAPACITY": "-3"},
        {"HISTORY_ENGINE_CLAMP_NAVIGATION": "maybe"},
    ],
)
def test_invalid_values_raise(environ: dict[str, str]) -> None:
    with pytest.raises(ValueError):
        HistorySettings.from_env(environ)


def test_explicit_capacity_must_be_positive() -> None:
    with pytest.raises(ValueError):
        HistorySettings(capacity=0)


def test_env_flag_reads_process_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HISTORY_ENGINE_LOG_JSON", "TRUE")

    assert env_flag("LOG_JSON", False) is True
    assert env_flag("MISSING_FLAG", True) is True


def test_default_telemetry_config_reads_flags(monkeypatch: pytest.MonkeyPatch) -> None:
    from history_engine.runtime import telemetry

    monkeypatch.setenv("HISTORY_ENGINE_DISABLE_CONSOLE", "1")
    monkeypatch.setenv("HISTORY_ENGINE_LOG_JSON", "yes")
    monkeypatch.setenv("HISTORY_ENGINE_LOG_LEVEL", "warning")

    config = telemetry._build_default_config()

    assert config.console is False
    assert config.json_format is True
    assert config.min_level == "WARNING"
