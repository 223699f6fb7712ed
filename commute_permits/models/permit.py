from commute_permits import db
from datetime import datetime


class Permit(db.Model):
    __tablename__ = 'permits'
    
    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.String(32), nullable=False, index=True)
    employee_name = db.Column(db.String(100), nullable=True)
    vehicle_id = db.Column(db.Integer, nullable=False, index=True)
    vehicle_number = db.Column(db.String(32), nullable=True)
    vehicle_model = db.Column(db.String(200), nullable=True)
    issue_date = db.Column(db.Date, nullable=False)
    expiration_date = db.Column(db.Date, nullable=False)
    status = db.Column(db.Enum('valid', 'expired', 'revoked', name='permit_status'),
                       default='valid', nullable=False, index=True)
    verification_token = db.Column(db.String(64), unique=True, nullable=False, index=True)
    permit_file_key = db.Column(db.String(255), nullable=False, default='')  # empty until rendered
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    def is_valid_on(self, day):
        """Whether the permit grants commuting approval on the given date."""
        return self.status == 'valid' and self.expiration_date >= day
    
    def to_dict(self):
        return {
            'id': str(self.id),
            'employee_id': self.employee_id,
            'employee_name': self.employee_name,
            'vehicle_id': str(self.vehicle_id),
            'vehicle_number': self.vehicle_number,
            'vehicle_model': self.vehicle_model,
            'issue_date': self.issue_date.isoformat(),
            'expiration_date': self.expiration_date.isoformat(),
            'status': self.status,
            'verification_token': self.verification_token,
            'permit_file_key': self.permit_file_key,
        }
    
    def __repr__(self):
        return f'<Permit {self.id} for vehicle {self.vehicle_id} ({self.status})>'
