"""Bulk approval: many approvals in sequential batches of concurrent items."""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, asdict
from typing import Optional

from commute_permits import db
from commute_permits.models import DOCUMENT_TYPES
from commute_permits.services.approval import ApprovalService
from commute_permits.services.notification_templates import approval_template
from commute_permits.utils.error_handler import CommutePermitException, ValidationError
from commute_permits.utils.logging_config import get_logger, log_audit_event

logger = get_logger(__name__)


@dataclass(frozen=True)
class BulkItem:
    id: str
    type: str


@dataclass
class BulkItemResult:
    id: str
    type: str
    success: bool
    error: Optional[str] = None
    
    def to_dict(self):
        data = asdict(self)
        if self.error is None:
            data.pop('error')
        return data


@dataclass
class BulkApprovalResult:
    results: list
    
    @property
    def success_count(self):
        return sum(1 for r in self.results if r.success)
    
    @property
    def failed_count(self):
        return len(self.results) - self.success_count
    
    @property
    def success(self):
        return self.failed_count == 0
    
    @property
    def message(self):
        message = f"{self.success_count} approval(s) completed"
        if self.failed_count:
            message += f" ({self.failed_count} failed)"
        return message
    
    def to_dict(self):
        return {
            'success': self.success,
            'message': self.message,
            'results': [r.to_dict() for r in self.results],
            'summary': {
                'total': len(self.results),
                'success': self.success_count,
                'failed': self.failed_count,
            },
        }


class BulkApprovalService:
    """Drives approval, permit issuance and owner notification over many items.
    
    Batches run one after another; items inside a batch run concurrently,
    each in its own application context. There is no rollback across items.
    """
    
    def __init__(self, app, approval, eligibility, dispatcher, max_items=50, batch_size=10, max_workers=10):
        self.app = app
        self.approval = approval
        self.eligibility = eligibility
        self.dispatcher = dispatcher
        self.max_items = max_items
        self.batch_size = batch_size
        self.max_workers = max_workers
    
    def validate(self, items, action):
        """Reject the whole request before any side effect."""
        if not isinstance(items, list) or not items:
            raise ValidationError("No items provided")
        if len(items) > self.max_items:
            raise ValidationError(f"Maximum {self.max_items} items allowed")
        if action == 'reject':
            raise ValidationError("Bulk rejection is not supported. Please reject individually with a reason.")
        if action != 'approve':
            raise ValidationError("Invalid action. Use 'approve'")
        
        parsed = []
        for raw in items:
            if not isinstance(raw, dict) or 'id' not in raw:
                raise ValidationError("Each item needs an id and a type")
            parsed.append(BulkItem(id=str(raw['id']), type=str(raw.get('type', ''))))
        return parsed
    
    def submit(self, items, actor, action='approve', base_url=None):
        """Validate and process a bulk request, returning per-item results."""
        parsed = self.validate(items, action)
        
        results = []
        for start in range(0, len(parsed), self.batch_size):
            batch = parsed[start:start + self.batch_size]
            workers = max(1, min(self.max_workers, len(batch)))
            with ThreadPoolExecutor(max_workers=workers) as executor:
                results.extend(executor.map(lambda item: self._run_item(item, actor, base_url), batch))
        
        outcome = BulkApprovalResult(results)
        log_audit_event('bulk_approval', approver_id=actor.id, total=len(results),
                        succeeded=outcome.success_count, failed=outcome.failed_count)
        return outcome
    
    def _run_item(self, item, actor, base_url):
        with self.app.app_context():
            try:
                return self.approve_item(item, actor, base_url)
            except Exception as e:
                db.session.rollback()
                logger.error(f"Error approving {item.type} {item.id}: {e}", exc_info=True)
                return BulkItemResult(item.id, item.type, False, str(e) or 'Unknown error')
    
    def approve_item(self, item, actor, base_url=None):
        """Approve one item; failures come back as a failed result, not an exception."""
        if item.type not in DOCUMENT_TYPES:
            return BulkItemResult(item.id, item.type, False, 'Invalid type')
        
        try:
            outcome = self.approval.approve(item.type, item.id, actor)
        except CommutePermitException as e:
            return BulkItemResult(item.id, item.type, False, str(e))
        
        issuance = self.eligibility.check_and_issue(outcome.employee_id, base_url=base_url)
        if issuance.errors:
            logger.error(f"Permit issuance problems for {outcome.employee_id}: {issuance.errors}")
        
        all_approved = ApprovalService.all_categories_approved(outcome.employee_id)
        self.dispatcher.send(
            outcome.employee_id,
            approval_template(item.type, outcome.document.document_number, all_approved),
            'approval',
            document_type=item.type,
            document_id=outcome.document.id,
        )
        return BulkItemResult(item.id, item.type, True)
