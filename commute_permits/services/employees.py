"""Employee retirement and reactivation with cascading soft-delete."""

from datetime import datetime
from commute_permits import db
from commute_permits.models import Employee
from commute_permits.services.document_store import DocumentStore
from commute_permits.utils.error_handler import NotFoundError, ValidationError
from commute_permits.utils.logging_config import get_logger, log_audit_event

logger = get_logger(__name__)


class EmployeeService:
    
    @staticmethod
    def get_or_404(employee_id):
        employee = Employee.find(employee_id)
        if employee is None:
            raise NotFoundError(f"Employee {employee_id} not found")
        return employee
    
    @staticmethod
    def retire(employee_id):
        """Mark an employee resigned and soft-delete every visible document they own."""
        employee = EmployeeService.get_or_404(employee_id)
        if employee.employment_status == 'resigned':
            raise ValidationError(f"Employee {employee_id} has already resigned")
        
        now = datetime.utcnow()
        employee.employment_status = 'resigned'
        employee.resignation_date = now.date()
        
        deleted = 0
        for _, document in DocumentStore.list_all(employee_id=employee_id):
            document.deleted_flag = True
            document.deleted_at = now
            deleted += 1
        db.session.commit()
        
        log_audit_event('employee_retired', employee_id=employee_id, documents_deleted=deleted)
        logger.info(f"Retired {employee_id}, soft-deleted {deleted} document(s)")
        return deleted
    
    @staticmethod
    def reactivate(employee_id):
        """Return a resigned employee to active and restore documents hidden by retirement."""
        employee = EmployeeService.get_or_404(employee_id)
        if employee.employment_status != 'resigned':
            raise ValidationError(f"Employee {employee_id} is not resigned")
        
        resigned_on = employee.resignation_date
        restored = 0
        for _, document in DocumentStore.list_all(employee_id=employee_id, include_deleted=True):
            if not document.deleted_flag or document.deleted_at is None:
                continue
            if resigned_on and document.deleted_at.date() < resigned_on:
                continue
            document.deleted_flag = False
            document.deleted_at = None
            restored += 1
        
        employee.employment_status = 'active'
        employee.resignation_date = None
        db.session.commit()
        
        log_audit_event('employee_reactivated', employee_id=employee_id, documents_restored=restored)
        return restored
