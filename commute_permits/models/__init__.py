from commute_permits import db

# Import models after db is defined
from .user import User
from .employee import Employee
from .document import (
    DocumentMixin, DriversLicense, VehicleRegistration, InsurancePolicy,
    DOCUMENT_MODELS, DOCUMENT_TYPES,
)
from .permit import Permit
from .approval_history import ApprovalHistory
from .notification import NotificationRecord
from .system_setting import SystemSetting

# Export models
__all__ = [
    'db', 'User', 'Employee', 'DocumentMixin', 'DriversLicense', 'VehicleRegistration',
    'InsurancePolicy', 'DOCUMENT_MODELS', 'DOCUMENT_TYPES', 'Permit', 'ApprovalHistory',
    'NotificationRecord', 'SystemSetting',
]
