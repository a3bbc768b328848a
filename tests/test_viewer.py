###########EXTERNAL IMPORTS############

import json
import pytest

#######################################

#############LOCAL IMPORTS#############

from model.monitoring.config import MonitorConfig
from model.monitoring.history import HistoryRecord
from viewer.client import MonitorViewer
from viewer.storage import HistoryStore

#######################################


def system_data(timestamp, elapsed, cpu=10.0, rx=1024.0, run_id=""):
    return {
        "event": "system-data",
        "data": {
            "captured_at_millis": timestamp,
            "cpu": {"usage_percent": cpu},
            "memory": {"usage_percent": 50.0},
            "network": [{"name": "eth0", "state": "up", "rx_bytes_per_sec": rx, "tx_bytes_per_sec": 0.0}],
            "gpu": [],
            "session": {"run_id": run_id, "elapsed_seconds": elapsed, "progress": elapsed / 300},
        },
    }


@pytest.fixture
def store(tmp_path):
    return HistoryStore(directory=str(tmp_path / "data"))


def test_begin_resets_state_and_returns_start_command(store):
    viewer = MonitorViewer(MonitorConfig(), store=store)
    viewer.history.append_snapshot(system_data(1, 0.5)["data"])

    command = viewer.begin()

    assert json.loads(command) == {"event": "start-monitoring"}
    assert viewer.monitoring
    assert len(viewer.history) == 0
    assert viewer.timer.elapsed_seconds == 0.0


def test_system_data_updates_history_and_timer(store):
    updates = []
    viewer = MonitorViewer(MonitorConfig(), store=store, on_update=lambda v: updates.append(v.timer.elapsed_seconds))
    viewer.begin()

    viewer.handle_message(system_data(1000, 0.5, cpu=20.0, rx=2048.0))
    viewer.handle_message(system_data(1500, 1.0, cpu=30.0))

    assert updates == [0.5, 1.0]
    assert viewer.timer.format() == "00:01 / 05:00"
    series = viewer.visible_series()
    assert series["cpu"] == [20.0, 30.0]
    assert series["network"]["rx"] == [2.0, 1.0]


def test_system_data_is_ignored_when_not_monitoring(store):
    viewer = MonitorViewer(MonitorConfig(), store=store)
    viewer.handle_message(system_data(1000, 0.5))
    assert len(viewer.history) == 0


def test_late_sample_of_previous_run_is_dropped_after_restart(store):
    viewer = MonitorViewer(MonitorConfig(), store=store)
    viewer.begin()
    viewer.handle_message(system_data(1000, 0.5, cpu=90.0, run_id="old"))
    viewer.handle_message(system_data(1500, 1.0, cpu=90.0, run_id="old"))
    viewer.end()

    viewer.begin()
    # A tick of the stopped run was still in flight
    viewer.handle_message(system_data(2000, 1.5, cpu=90.0, run_id="old"))
    viewer.handle_message(system_data(2500, 0.5, cpu=15.0, run_id="new"))

    assert viewer.history.series()["cpu"] == [15.0]
    assert viewer.timer.elapsed_seconds == 0.5
    assert viewer.run_id == "new"
    assert viewer.finished_run_ids == {"old"}


def test_completion_marks_run_finished(store):
    viewer = MonitorViewer(MonitorConfig(), store=store)
    viewer.begin()
    viewer.handle_message(system_data(1000, 0.5, run_id="first"))
    viewer.handle_message({"event": "monitoring-complete", "data": {"elapsed_seconds": 300, "duration_seconds": 300}})

    viewer.begin()
    viewer.handle_message(system_data(2000, 300.5, run_id="first"))
    assert len(viewer.history) == 0


def test_visible_series_is_limited_to_window(store):
    viewer = MonitorViewer(MonitorConfig(max_data_points=10, visualization_window=3), store=store)
    viewer.begin()
    for i in range(12):
        viewer.handle_message(system_data(1000 + i, (i + 1) * 0.5, cpu=float(i)))

    assert len(viewer.history) == 10
    assert viewer.visible_series()["cpu"] == [9.0, 10.0, 11.0]


def test_stop_saves_history(store):
    viewer = MonitorViewer(MonitorConfig(), store=store)
    viewer.begin()
    viewer.handle_message(system_data(1000, 0.5))
    viewer.handle_message(system_data(1500, 1.0))

    command = viewer.end()

    assert json.loads(command) == {"event": "stop-monitoring"}
    assert not viewer.monitoring
    record = store.load()
    assert record.duration_seconds == 1.0
    assert record.series_data["timestamps"] == [1000, 1500]
    assert viewer.end() is None


def test_error_event_keeps_monitoring(store):
    errors = []
    viewer = MonitorViewer(MonitorConfig(), store=store, on_error=errors.append)
    viewer.begin()
    viewer.handle_message({"event": "error", "data": {"message": "sensor unavailable"}})

    assert errors == ["sensor unavailable"]
    assert viewer.monitoring


def test_complete_event_saves_and_notifies(store):
    completed = []
    viewer = MonitorViewer(MonitorConfig(), store=store, on_complete=completed.append)
    viewer.begin()
    viewer.handle_message(system_data(1000, 299.5))
    viewer.handle_message({"event": "monitoring-complete", "data": {"elapsed_seconds": 300, "duration_seconds": 300}})

    assert completed == [viewer]
    assert viewer.completed
    assert not viewer.monitoring
    assert viewer.timer.progress == 1.0
    assert viewer.timer.format() == "05:00 / 05:00"
    assert store.load().duration_seconds == 300


def test_unknown_event_is_ignored(store):
    viewer = MonitorViewer(MonitorConfig(), store=store)
    viewer.begin()
    viewer.handle_message({"event": "reboot"})
    assert viewer.monitoring


def test_store_overwrites_single_record(store):
    first = HistoryRecord(series_data={"cpu": [1.0]}, captured_at_epoch_millis=1, duration_seconds=1.0)
    second = HistoryRecord(series_data={"cpu": [2.0]}, captured_at_epoch_millis=2, duration_seconds=2.0)

    assert store.load() is None
    store.save(first)
    store.save(second)

    assert store.path.endswith("monitoringData.json")
    assert store.load() == second


def test_store_ignores_corrupt_record(store, tmp_path):
    (tmp_path / "data").mkdir()
    with open(store.path, "w", encoding="utf-8") as f:
        f.write("{not json")
    assert store.load() is None
