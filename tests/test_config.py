###########EXTERNAL IMPORTS############

import pytest

#######################################

#############LOCAL IMPORTS#############

from model.monitoring.config import MonitorConfig
import util.functions.objects as objects

#######################################

ENV_KEYS = [
    "SAMPLING_INTERVAL_MS",
    "MAX_MONITORING_SECONDS",
    "MAX_DATA_POINTS",
    "VISUALIZATION_WINDOW",
    "TOP_PROCESSES",
    "OUTBOUND_QUEUE_SIZE",
    "HOST",
    "PORT",
    "CORS_ORIGINS",
]


@pytest.fixture
def clean_env(monkeypatch):
    # Recording every key first restores them even after load_dotenv wrote to os.environ
    for key in ENV_KEYS:
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    return monkeypatch


def test_defaults():
    config = MonitorConfig()
    assert config.sampling_interval_ms == 500
    assert config.sampling_interval_seconds == 0.5
    assert config.max_monitoring_seconds == 300
    assert config.max_data_points == 600
    assert config.visualization_window == 60
    assert config.top_processes == 5
    assert config.port == 3000


def test_from_env_without_variables_uses_defaults(clean_env):
    assert MonitorConfig.from_env() == MonitorConfig()


def test_from_env_reads_variables(clean_env):
    clean_env.setenv("SAMPLING_INTERVAL_MS", "250")
    clean_env.setenv("MAX_MONITORING_SECONDS", "60")
    clean_env.setenv("CORS_ORIGINS", "http://localhost:5173, http://example.com")
    clean_env.setenv("PORT", "")

    config = MonitorConfig.from_env()
    assert config.sampling_interval_seconds == 0.25
    assert config.max_monitoring_seconds == 60
    assert config.cors_origins == ["http://localhost:5173", "http://example.com"]
    assert config.port == 3000


def test_from_env_loads_file_without_overriding_environment(clean_env, tmp_path):
    env_file = tmp_path / "monitor.env"
    env_file.write_text("MAX_DATA_POINTS=120\nVISUALIZATION_WINDOW=30\nTOP_PROCESSES=8\n")
    clean_env.setenv("TOP_PROCESSES", "3")

    config = MonitorConfig.from_env(str(env_file))
    assert config.max_data_points == 120
    assert config.visualization_window == 30
    assert config.top_processes == 3


def test_invalid_integer_is_rejected(clean_env):
    clean_env.setenv("SAMPLING_INTERVAL_MS", "fast")
    with pytest.raises(ValueError):
        MonitorConfig.from_env()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"sampling_interval_ms": 0},
        {"sampling_interval_ms": 2000, "max_monitoring_seconds": 1},
        {"max_data_points": 0},
        {"visualization_window": 0},
        {"max_data_points": 50, "visualization_window": 60},
        {"top_processes": 0},
        {"outbound_queue_size": 0},
    ],
)
def test_inconsistent_values_are_rejected(kwargs):
    with pytest.raises(ValueError):
        MonitorConfig(**kwargs)


def test_get_data():
    data = MonitorConfig().get_data()
    assert data["sampling_interval_ms"] == 500
    assert data["cors_origins"] == ["*"]


def test_env_helpers(monkeypatch):
    monkeypatch.setenv("SYSMON_FLAG", "true")
    monkeypatch.delenv("SYSMON_MISSING", raising=False)

    assert objects.check_bool_str(objects.get_env_str("SYSMON_FLAG", "FALSE"))
    assert not objects.check_bool_str(None)
    assert objects.get_env_int("SYSMON_MISSING", 7) == 7
    assert objects.get_env_str("SYSMON_MISSING", "fallback") == "fallback"
    assert objects.get_env_list("SYSMON_MISSING", ["a"]) == ["a"]
