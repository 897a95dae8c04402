import pytest

from tracker.models import AppSetting
from tracker.services import settings_service
from tracker.services.errors import InvalidSetting


def test_defaults_when_nothing_saved(db_session):
    settings = settings_service.get_auto_sync_settings(db_session)
    assert (settings.enabled, settings.interval_minutes) == (False, 5)
    assert settings.message == "Auto-sync disabled"


def test_save_and_reload(db_session):
    saved = settings_service.save_auto_sync_settings(db_session, enabled=True, interval_minutes=15)
    assert saved.message == "Auto-sync enabled (every 15 min)"

    db_session.expire_all()
    loaded = settings_service.get_auto_sync_settings(db_session)
    assert (loaded.enabled, loaded.interval_minutes) == (True, 15)


def test_saving_twice_updates_one_row_per_key(db_session):
    settings_service.save_auto_sync_settings(db_session, enabled=True, interval_minutes=10)
    settings_service.save_auto_sync_settings(db_session, enabled=False, interval_minutes=1)

    assert db_session.query(AppSetting).count() == 2
    loaded = settings_service.get_auto_sync_settings(db_session)
    assert (loaded.enabled, loaded.interval_minutes) == (False, 1)


@pytest.mark.parametrize("interval", [0, -3, 2.5, "10", None, True])
def test_invalid_interval_changes_nothing(db_session, interval):
    settings_service.save_auto_sync_settings(db_session, enabled=True, interval_minutes=30)

    with pytest.raises(InvalidSetting) as exc_info:
        settings_service.save_auto_sync_settings(db_session, enabled=False, interval_minutes=interval)
    assert str(exc_info.value) == "Interval must be a positive integer of 1 or more"

    loaded = settings_service.get_auto_sync_settings(db_session)
    assert (loaded.enabled, loaded.interval_minutes) == (True, 30)
