import logging

import pytest

from src.db_metadata.cancellation import ProgressMonitor, attach_cancel
from src.db_metadata.dialects import DUCKDB, POSTGRES
from src.enums import ProgressProperty

# --- ProgressMonitor ---


def test_progress_counts_steps():
    monitor = ProgressMonitor(step_count=4)
    assert monitor.progress == 0
    monitor.end_step()
    monitor.end_step()
    assert monitor.progress == 0.5


def test_progress_is_capped_at_one():
    monitor = ProgressMonitor(step_count=1)
    monitor.end_step()
    monitor.end_step()
    assert monitor.progress == 1


def test_step_count_must_be_positive():
    with pytest.raises(ValueError):
        ProgressMonitor(step_count=0)


def test_progress_listeners_receive_old_and_new_values():
    events = []
    monitor = ProgressMonitor(step_count=2)
    monitor.add_listener(ProgressProperty.PROGRESS, lambda *event: events.append(event))
    monitor.end_step()
    assert events == [(ProgressProperty.PROGRESS, 0, 0.5)]


def test_cancel_fires_once():
    events = []
    monitor = ProgressMonitor()
    monitor.add_listener(ProgressProperty.CANCELED, lambda *event: events.append(event))
    monitor.cancel()
    monitor.cancel()
    assert monitor.is_canceled
    assert events == [(ProgressProperty.CANCELED, False, True)]


def test_removed_listener_is_not_called():
    events = []
    monitor = ProgressMonitor()

    def listener(*event):
        events.append(event)

    monitor.add_listener(ProgressProperty.CANCELED, listener)
    monitor.remove_listener(ProgressProperty.CANCELED, listener)
    monitor.remove_listener(ProgressProperty.CANCELED, listener)  # unknown: ignored
    monitor.cancel()
    assert events == []


# --- attach_cancel ---


def test_attach_cancel_cancels_the_connection(fake_connection):
    connection = fake_connection()
    monitor = ProgressMonitor()
    attach_cancel(connection, monitor, dialect=POSTGRES)
    assert connection.cancelled == 0
    monitor.cancel()
    assert connection.cancelled == 1


def test_detached_listener_does_not_cancel(fake_connection):
    connection = fake_connection()
    monitor = ProgressMonitor()
    listener = attach_cancel(connection, monitor, dialect=POSTGRES)
    monitor.remove_listener(ProgressProperty.CANCELED, listener)
    monitor.cancel()
    assert connection.cancelled == 0


def test_cancel_failure_is_logged_not_raised(fake_connection, caplog):
    connection = fake_connection()  # has cancel() but no interrupt()
    monitor = ProgressMonitor()
    attach_cancel(connection, monitor, dialect=DUCKDB)
    with caplog.at_level(logging.WARNING):
        monitor.cancel()
    assert monitor.is_canceled
    assert "Failed to cancel" in caplog.text
