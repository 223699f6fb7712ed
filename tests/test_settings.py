import pytest

from commute_permits import db
from commute_permits.models import SystemSetting
from commute_permits.services.settings import ExpirationSettings, SettingsProvider
from commute_permits.utils.error_handler import ValidationError


def test_defaults_come_from_config(app):
    provider = SettingsProvider.from_config(app.config)
    assert provider.get() == ExpirationSettings(30, 30, 30, 7)


def test_partial_update(app):
    provider = SettingsProvider()
    
    settings = provider.update({'vehicle_warning_days': '45', 'admin_escalation_days': 3},
                               updated_by='admin@example.test')
    
    assert settings.vehicle_warning_days == 45
    assert settings.admin_escalation_days == 3
    assert settings.license_warning_days == 30
    row = SystemSetting.query.filter_by(setting_key='vehicle_warning_days').one()
    assert row.updated_by == 'admin@example.test'


@pytest.mark.parametrize('values', [
    {'license_warning_days': 0},
    {'license_warning_days': -5},
    {'license_warning_days': 'soon'},
    {'license_warning_days': True},
    {'retention_days': 10},
])
def test_invalid_updates_change_nothing(app, values):
    provider = SettingsProvider()
    
    with pytest.raises(ValidationError):
        provider.update(values, updated_by='admin@example.test')
    
    assert SystemSetting.query.count() == 0


def test_unparsable_stored_value_falls_back(app):
    db.session.add(SystemSetting(setting_key='insurance_warning_days', setting_value='n/a'))
    db.session.commit()
    
    assert SettingsProvider().get().insurance_warning_days == 30
