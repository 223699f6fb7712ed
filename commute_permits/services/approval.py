"""Approval engine: pending/approved/rejected transitions with an audit trail."""

from dataclasses import dataclass
from datetime import datetime
from commute_permits import db
from commute_permits.models import ApprovalHistory, Employee
from commute_permits.services.document_store import DocumentStore, resolve_model
from commute_permits.utils.error_handler import ValidationError, NotFoundError
from commute_permits.utils.logging_config import get_logger, log_audit_event

logger = get_logger(__name__)


@dataclass(frozen=True)
class Actor:
    """Identity of whoever approves or rejects."""
    id: str
    name: str = ''
    
    @classmethod
    def from_user(cls, user):
        return cls(id=str(user.email or user.id), name=user.name or user.email or '')


@dataclass
class ApprovalOutcome:
    document: object
    changed: bool
    
    @property
    def employee_id(self):
        return self.document.employee_id


class ApprovalService:
    """Service for approving and rejecting submitted documents."""
    
    def __init__(self, store=None):
        self.store = store or DocumentStore
    
    def approve(self, category, document_id, actor):
        """Approve a pending or rejected document.
        
        Approving an already approved document is a successful no-op and
        appends no history. Callers are expected to re-check eligibility
        for ``outcome.employee_id`` afterwards.
        """
        resolve_model(category)
        document = self.store.get(category, document_id)
        if document is None:
            raise NotFoundError(f"{category} {document_id} not found")
        
        if document.approval_status == 'approved':
            logger.debug(f"{category} {document.id} already approved")
            return ApprovalOutcome(document, changed=False)
        
        now = datetime.utcnow()
        document.approval_status = 'approved'
        document.rejection_reason = None
        document.approved_at = now
        self._append_history(category, document, 'approved', actor, now=now)
        db.session.commit()
        
        log_audit_event('document_approved', document_type=category, document_id=document.id,
                        employee_id=document.employee_id, approver_id=actor.id)
        return ApprovalOutcome(document, changed=True)
    
    def reject(self, category, document_id, reason, actor):
        """Reject a document with a mandatory reason.
        
        Permits already issued for the employee's other vehicles are left
        untouched.
        """
        reason = (reason or '').strip()
        if not reason:
            raise ValidationError("Rejection reason is required")
        
        resolve_model(category)
        document = self.store.get(category, document_id)
        if document is None:
            raise NotFoundError(f"{category} {document_id} not found")
        
        now = datetime.utcnow()
        document.approval_status = 'rejected'
        document.rejection_reason = reason
        document.approved_at = None
        self._append_history(category, document, 'rejected', actor, reason=reason, now=now)
        db.session.commit()
        
        log_audit_event('document_rejected', document_type=category, document_id=document.id,
                        employee_id=document.employee_id, approver_id=actor.id, reason=reason)
        return ApprovalOutcome(document, changed=True)
    
    @staticmethod
    def _append_history(category, document, action, actor, reason=None, now=None):
        employee = Employee.find(document.employee_id)
        db.session.add(ApprovalHistory(
            document_type=category,
            document_id=document.id,
            employee_id=document.employee_id,
            employee_name=employee.employee_name if employee else None,
            action=action,
            approver_id=actor.id,
            approver_name=actor.name,
            reason=reason,
            timestamp=now or datetime.utcnow(),
        ))
    
    @staticmethod
    def all_categories_approved(employee_id, store=None):
        """Whether the employee holds an approved document in every category."""
        store = store or DocumentStore
        return all(
            store.list(category, employee_id=employee_id, approval_status='approved')
            for category in ('license', 'vehicle', 'insurance')
        )
