from commute_permits import db
from datetime import datetime


class DocumentMixin:
    """Columns and accessors shared by the three document categories."""
    
    document_type = None
    
    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.String(32), nullable=False, index=True)
    approval_status = db.Column(db.String(20), default='pending', nullable=False, index=True)  # pending, approved, rejected
    rejection_reason = db.Column(db.Text, nullable=True)
    approved_at = db.Column(db.DateTime, nullable=True)
    image_url = db.Column(db.String(255), nullable=True)
    deleted_flag = db.Column(db.Boolean, default=False, nullable=False, index=True)
    deleted_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    @property
    def document_number(self):
        raise NotImplementedError
    
    @property
    def valid_until(self):
        """End of the document's validity window."""
        raise NotImplementedError
    
    def to_dict(self):
        return {
            'id': str(self.id),
            'type': self.document_type,
            'employee_id': self.employee_id,
            'document_number': self.document_number,
            'valid_until': self.valid_until.isoformat() if self.valid_until else None,
            'approval_status': self.approval_status,
            'rejection_reason': self.rejection_reason,
            'deleted_flag': self.deleted_flag,
        }


class DriversLicense(DocumentMixin, db.Model):
    __tablename__ = 'drivers_licenses'
    
    document_type = 'license'
    
    license_number = db.Column(db.String(32), nullable=False)
    license_type = db.Column(db.String(50), nullable=True)
    issue_date = db.Column(db.Date, nullable=True)
    expiration_date = db.Column(db.Date, nullable=False)
    
    @property
    def document_number(self):
        return self.license_number
    
    @property
    def valid_until(self):
        return self.expiration_date
    
    def __repr__(self):
        return f'<DriversLicense {self.license_number} for {self.employee_id}>'


class VehicleRegistration(DocumentMixin, db.Model):
    __tablename__ = 'vehicle_registrations'
    
    document_type = 'vehicle'
    
    vehicle_number = db.Column(db.String(32), nullable=False, index=True)
    vehicle_type = db.Column(db.String(50), nullable=True)
    manufacturer = db.Column(db.String(100), nullable=True)
    model_name = db.Column(db.String(100), nullable=True)
    owner_name = db.Column(db.String(100), nullable=True)
    inspection_expiration_date = db.Column(db.Date, nullable=False)
    
    @property
    def document_number(self):
        return self.vehicle_number
    
    @property
    def valid_until(self):
        return self.inspection_expiration_date
    
    @property
    def vehicle_model(self):
        """Manufacturer and model joined for display on the permit."""
        parts = [part for part in (self.manufacturer, self.model_name) if part]
        return ' '.join(parts) if parts else '(not registered)'
    
    def __repr__(self):
        return f'<VehicleRegistration {self.vehicle_number} for {self.employee_id}>'


class InsurancePolicy(DocumentMixin, db.Model):
    __tablename__ = 'insurance_policies'
    
    document_type = 'insurance'
    
    policy_number = db.Column(db.String(50), nullable=False)
    insurance_company = db.Column(db.String(100), nullable=True)
    policy_type = db.Column(db.String(50), nullable=True)
    coverage_start_date = db.Column(db.Date, nullable=True)
    coverage_end_date = db.Column(db.Date, nullable=False)
    insured_amount = db.Column(db.Numeric(14, 2), nullable=True)
    
    @property
    def document_number(self):
        return self.policy_number
    
    @property
    def valid_until(self):
        return self.coverage_end_date
    
    def __repr__(self):
        return f'<InsurancePolicy {self.policy_number} for {self.employee_id}>'


DOCUMENT_MODELS = {
    'license': DriversLicense,
    'vehicle': VehicleRegistration,
    'insurance': InsurancePolicy,
}

DOCUMENT_TYPES = tuple(DOCUMENT_MODELS)
