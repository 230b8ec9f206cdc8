"""Tests for Celery application configuration."""

from celery.schedules import crontab


def test_celery_app_imports():
    """Test that Celery app can be imported."""
    from outlook_sync.celery_app import app

    assert app is not None
    assert app.main == "outlook_sync"


def test_celery_app_configuration():
    """Test Celery app configuration."""
    from outlook_sync.celery_app import app

    assert app.conf.task_serializer == "json"
    assert app.conf.accept_content == ["json"]
    assert app.conf.result_serializer == "json"
    assert app.conf.timezone == "UTC"
    assert app.conf.enable_utc is True
    assert app.conf.task_time_limit == 900
    assert app.conf.task_soft_time_limit == 840
    assert app.conf.task_acks_late is True


def test_celery_beat_schedule():
    """Test that the periodic sync is scheduled on the configured interval."""
    from outlook_sync.celery_app import app, settings

    beat_schedule = app.conf.beat_schedule

    assert list(beat_schedule) == ["sync-all-calendars"]
    entry = beat_schedule["sync-all-calendars"]
    assert entry["task"] == "outlook_sync.tasks.calendar_sync.sync_all_calendars"
    assert entry["schedule"] == crontab(minute=f"*/{settings.sync_interval_minutes}")


def test_tasks_are_registered():
    """Test that the sync tasks are registered with Celery."""
    from outlook_sync.celery_app import app
    import outlook_sync.tasks.calendar_sync  # noqa: F401

    assert "outlook_sync.tasks.calendar_sync.sync_all_calendars" in app.tasks
    assert "outlook_sync.tasks.calendar_sync.sync_calendar_binding" in app.tasks
