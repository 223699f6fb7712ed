"""Permit registry: permit records with at most one valid permit per vehicle."""

import secrets
from datetime import datetime
from commute_permits import db
from commute_permits.models import Permit
from commute_permits.services.document_store import parse_document_id
from commute_permits.utils.logging_config import get_logger, log_audit_event

logger = get_logger(__name__)


class PermitRegistry:
    """Service for reading and writing permit records. Permits are never deleted."""
    
    @staticmethod
    def generate_token():
        """Generate an unguessable verification token not used by any permit."""
        while True:
            token = secrets.token_urlsafe(32)
            if not Permit.query.filter_by(verification_token=token).first():
                return token
    
    @staticmethod
    def get(permit_id):
        pk = parse_document_id(permit_id)
        return db.session.get(Permit, pk) if pk is not None else None
    
    @staticmethod
    def get_by_token(token):
        if not token:
            return None
        return Permit.query.filter_by(verification_token=token).first()
    
    @staticmethod
    def valid_for_vehicle(vehicle_id):
        """The valid permit for a vehicle, if any."""
        return Permit.query.filter_by(vehicle_id=vehicle_id, status='valid').order_by(Permit.id.desc()).first()
    
    @staticmethod
    def list_all(employee_id=None):
        query = Permit.query
        if employee_id:
            query = query.filter_by(employee_id=employee_id)
        return query.order_by(Permit.created_at.desc(), Permit.id.desc()).all()
    
    @staticmethod
    def create(employee, vehicle, expiration_date, issue_date=None):
        """Create a valid permit for a vehicle.
        
        Any permit still marked valid for the same vehicle is revoked in the
        same transaction so the one-valid-permit-per-vehicle rule holds.
        """
        for stale in Permit.query.filter_by(vehicle_id=vehicle.id, status='valid').all():
            stale.status = 'revoked'
            logger.warning(f"Revoked stale valid permit {stale.id} for vehicle {vehicle.id}")
        
        permit = Permit(
            employee_id=employee.employee_id,
            employee_name=employee.employee_name,
            vehicle_id=vehicle.id,
            vehicle_number=vehicle.vehicle_number,
            vehicle_model=vehicle.vehicle_model,
            issue_date=issue_date or datetime.utcnow().date(),
            expiration_date=expiration_date,
            status='valid',
            verification_token=PermitRegistry.generate_token(),
            permit_file_key='',
        )
        db.session.add(permit)
        db.session.commit()
        
        log_audit_event('permit_issued', permit_id=permit.id, employee_id=permit.employee_id,
                        vehicle_id=permit.vehicle_id, expiration_date=expiration_date.isoformat())
        return permit
    
    @staticmethod
    def revoke(permit):
        permit.status = 'revoked'
        db.session.commit()
        log_audit_event('permit_revoked', permit_id=permit.id, vehicle_id=permit.vehicle_id)
        return permit
    
    @staticmethod
    def set_file_key(permit, file_key):
        permit.permit_file_key = file_key
        db.session.commit()
        return permit
    
    @staticmethod
    def expire_lapsed(today=None):
        """Move valid permits past their expiration date to ``expired``."""
        today = today or datetime.utcnow().date()
        lapsed = Permit.query.filter(Permit.status == 'valid', Permit.expiration_date < today).all()
        for permit in lapsed:
            permit.status = 'expired'
        if lapsed:
            db.session.commit()
            logger.info(f"Marked {len(lapsed)} permit(s) as expired")
        return len(lapsed)
    
    @staticmethod
    def verify(token, today=None):
        """Public verification of a permit by its token."""
        today = today or datetime.utcnow().date()
        permit = PermitRegistry.get_by_token(token)
        if permit is None:
            return {'valid': False, 'message': 'Permit not found', 'permit': None}
        
        if permit.status == 'revoked':
            message = 'This permit has been revoked'
        elif permit.status == 'expired' or permit.expiration_date < today:
            message = 'This permit has expired'
        else:
            message = 'Valid permit'
        
        return {
            'valid': permit.is_valid_on(today),
            'message': message,
            'permit': {
                'employee_name': permit.employee_name,
                'vehicle_number': permit.vehicle_number,
                'vehicle_model': permit.vehicle_model,
                'issue_date': permit.issue_date.isoformat(),
                'expiration_date': permit.expiration_date.isoformat(),
                'status': permit.status,
            },
        }
