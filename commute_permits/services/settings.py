"""System settings provider for expiration monitoring thresholds."""

from dataclasses import dataclass, asdict
from commute_permits import db
from commute_permits.models import SystemSetting
from commute_permits.utils.error_handler import ValidationError


@dataclass(frozen=True)
class ExpirationSettings:
    license_warning_days: int = 30
    vehicle_warning_days: int = 30
    insurance_warning_days: int = 30
    admin_escalation_days: int = 7
    
    def warning_days_for(self, category):
        return {
            'license': self.license_warning_days,
            'vehicle': self.vehicle_warning_days,
            'insurance': self.insurance_warning_days,
        }[category]
    
    def to_dict(self):
        return asdict(self)


SETTING_KEYS = tuple(ExpirationSettings.__dataclass_fields__)


class SettingsProvider:
    """Reads thresholds from the system settings table, falling back to config defaults."""
    
    def __init__(self, defaults=None):
        self.defaults = defaults or ExpirationSettings()
    
    @classmethod
    def from_config(cls, config):
        return cls(ExpirationSettings(
            license_warning_days=config['DEFAULT_LICENSE_WARNING_DAYS'],
            vehicle_warning_days=config['DEFAULT_VEHICLE_WARNING_DAYS'],
            insurance_warning_days=config['DEFAULT_INSURANCE_WARNING_DAYS'],
            admin_escalation_days=config['DEFAULT_ADMIN_ESCALATION_DAYS'],
        ))
    
    def get(self):
        """Current thresholds; unparsable stored values fall back to the defaults."""
        values = self.defaults.to_dict()
        for row in SystemSetting.query.filter(SystemSetting.setting_key.in_(SETTING_KEYS)).all():
            try:
                values[row.setting_key] = int(row.setting_value)
            except (TypeError, ValueError):
                continue
        return ExpirationSettings(**values)
    
    def update(self, values, updated_by):
        """Partially update thresholds. Every value must be a positive integer."""
        unknown = set(values) - set(SETTING_KEYS)
        if unknown:
            raise ValidationError(f"Unknown settings: {', '.join(sorted(unknown))}")
        
        parsed = {}
        for key, value in values.items():
            try:
                number = int(value)
            except (TypeError, ValueError):
                raise ValidationError(f"{key} must be an integer")
            if number < 1 or isinstance(value, bool):
                raise ValidationError(f"{key} must be a positive integer")
            parsed[key] = number
        
        for key, number in parsed.items():
            row = SystemSetting.query.filter_by(setting_key=key).first()
            if row is None:
                row = SystemSetting(setting_key=key, setting_value=str(number))
                db.session.add(row)
            row.setting_value = str(number)
            row.updated_by = updated_by
        db.session.commit()
        return self.get()
