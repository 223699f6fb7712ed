"""Eligibility check and permit issuance/reissuance."""

from dataclasses import dataclass, field
from datetime import datetime
from commute_permits import db
from commute_permits.models import Employee
from commute_permits.services.document_store import DocumentStore
from commute_permits.services.permit_registry import PermitRegistry
from commute_permits.utils.error_handler import ArtifactRenderError, NotFoundError, ValidationError
from commute_permits.utils.logging_config import get_logger
from commute_permits.utils.permit_renderer import PermitArtifact, build_verification_url

logger = get_logger(__name__)

# Expiration dates closer than this are treated as unchanged
REISSUE_THRESHOLD_DAYS = 1


def calculate_permit_expiration(license_expiration, vehicle_expiration, insurance_expiration):
    """A permit never outlives its weakest supporting document."""
    return min(license_expiration, vehicle_expiration, insurance_expiration)


def select_current(documents):
    """Deterministic pick among several approved documents: most recently approved wins."""
    return max(
        documents,
        key=lambda d: (d.approved_at or datetime.min, d.updated_at or datetime.min, d.id),
    )


@dataclass
class IssuanceResult:
    """Outcome of one eligibility check; never raised, always returned."""
    employee_id: str
    eligible: bool = False
    issued: list = field(default_factory=list)
    reissued: list = field(default_factory=list)
    skipped: list = field(default_factory=list)
    lapsed: list = field(default_factory=list)
    errors: list = field(default_factory=list)
    reason: str = ''
    
    @property
    def ok(self):
        return not self.errors
    
    def to_dict(self):
        return {
            'employee_id': self.employee_id,
            'eligible': self.eligible,
            'issued': [str(pid) for pid in self.issued],
            'reissued': [str(pid) for pid in self.reissued],
            'skipped': [str(pid) for pid in self.skipped],
            'lapsed': [str(vid) for vid in self.lapsed],
            'errors': list(self.errors),
            'reason': self.reason,
        }


class EligibilityService:
    """Decides whether an employee qualifies and issues one permit per approved vehicle."""
    
    def __init__(self, renderer, base_url='', store=None, registry=None):
        self.renderer = renderer
        self.base_url = base_url or ''
        self.store = store or DocumentStore
        self.registry = registry or PermitRegistry
    
    def check_and_issue(self, employee_id, base_url=None, today=None):
        """Issue, reissue or leave alone the permits of one employee.
        
        Never raises: failures are collected on the returned result so an
        approval response is never blocked by permit issuance.
        """
        result = IssuanceResult(employee_id=employee_id)
        today = today or datetime.utcnow().date()
        try:
            licenses = self.store.list('license', employee_id=employee_id, approval_status='approved')
            vehicles = self.store.list('vehicle', employee_id=employee_id, approval_status='approved')
            insurances = self.store.list('insurance', employee_id=employee_id, approval_status='approved')
            
            missing = [name for name, docs in (('license', licenses), ('vehicle', vehicles),
                                               ('insurance', insurances)) if not docs]
            if missing:
                result.reason = f"No approved {', '.join(missing)}"
                return result
            
            employee = Employee.find(employee_id)
            if employee is None:
                result.reason = 'Employee not found'
                result.errors.append(f"Employee {employee_id} not found")
                return result
            
            result.eligible = True
            license = select_current(licenses)
            insurance = select_current(insurances)
            
            for vehicle in vehicles:
                try:
                    self._issue_for_vehicle(result, employee, vehicle, license, insurance,
                                            base_url or self.base_url, today)
                except Exception as e:
                    db.session.rollback()
                    logger.error(f"Permit issuance failed for vehicle {vehicle.id}: {e}", exc_info=True)
                    result.errors.append(f"vehicle {vehicle.id}: {e}")
        except Exception as e:
            db.session.rollback()
            logger.error(f"Eligibility check failed for {employee_id}: {e}", exc_info=True)
            result.errors.append(str(e))
        return result
    
    def _issue_for_vehicle(self, result, employee, vehicle, license, insurance, base_url, today):
        expiration = calculate_permit_expiration(
            license.expiration_date,
            vehicle.inspection_expiration_date,
            insurance.coverage_end_date,
        )
        
        existing = self.registry.valid_for_vehicle(vehicle.id)
        if existing is not None:
            if abs((existing.expiration_date - expiration).days) < REISSUE_THRESHOLD_DAYS:
                logger.info(f"Permit already issued with same expiration: {vehicle.vehicle_number}")
                result.skipped.append(existing.id)
                return
        
        if expiration < today:
            # never issue a permit that is already expired
            logger.info(f"Supporting documents lapsed on {expiration.isoformat()}: {vehicle.vehicle_number}")
            result.lapsed.append(vehicle.id)
            result.reason = 'Supporting documents have expired'
            return
        
        if existing is not None:
            logger.info(f"Reissuing permit (expiration changed): {vehicle.vehicle_number}")
            self.registry.revoke(existing)
        
        permit = self.registry.create(employee, vehicle, expiration, issue_date=today)
        if existing is not None:
            result.reissued.append(permit.id)
        else:
            result.issued.append(permit.id)
        
        try:
            self.render_artifact(permit, base_url)
        except (ArtifactRenderError, ValidationError) as e:
            # the permit stays valid with an empty file key until regenerated
            result.errors.append(f"permit {permit.id}: {e}")
            return
        logger.info(f"Issued permit: {employee.employee_name} - {vehicle.vehicle_number}")
    
    def render_artifact(self, permit, base_url=None):
        """Render the artifact for a permit and store its file key."""
        base_url = base_url or self.base_url
        if not base_url:
            raise ValidationError("A public base URL is required to build the verification link")
        file_key = self.renderer.render(PermitArtifact(
            permit_id=permit.id,
            employee_name=permit.employee_name or permit.employee_id,
            vehicle_number=permit.vehicle_number or '',
            vehicle_model=permit.vehicle_model or '',
            issue_date=permit.issue_date,
            expiration_date=permit.expiration_date,
            verification_url=build_verification_url(base_url, permit.verification_token),
        ))
        self.registry.set_file_key(permit, file_key)
        return file_key
    
    def regenerate_artifact(self, permit_id, base_url=None):
        """Manual recovery for permits whose artifact is missing or stale."""
        permit = self.registry.get(permit_id)
        if permit is None:
            raise NotFoundError(f"Permit {permit_id} not found")
        return self.render_artifact(permit, base_url)
