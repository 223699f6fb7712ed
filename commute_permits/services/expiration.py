"""Expiration monitor: warning, expired and admin escalation passes."""

from dataclasses import dataclass, asdict
from datetime import datetime, timedelta

from commute_permits.models import DOCUMENT_TYPES, Employee, User
from commute_permits.services.document_store import DocumentStore
from commute_permits.services.notification_templates import (
    ExpirationNotice, admin_escalation_template, expiration_warning_template, expired_template,
)
from commute_permits.services.permit_registry import PermitRegistry
from commute_permits.utils.logging_config import get_logger, log_audit_event

logger = get_logger(__name__)

ESCALATION_DEDUP_KEY = 'admin_escalation'


def classify(valid_until, today, warning_days):
    """Return ``expiring``, ``expired`` or None for a document end date."""
    if valid_until < today:
        return 'expired'
    if valid_until <= today + timedelta(days=warning_days):
        return 'expiring'
    return None


def needs_escalation(notice, escalation_days):
    return notice.days_overdue >= escalation_days


@dataclass
class PassResult:
    processed: int = 0
    sent: int = 0
    skipped: int = 0
    failed: int = 0
    documents: int = 0
    
    def count(self, outcome):
        setattr(self, outcome, getattr(self, outcome) + 1)
    
    def to_dict(self):
        return asdict(self)


class ExpirationMonitor:
    def __init__(self, dispatcher, settings_provider, store=None, registry=None):
        self.dispatcher = dispatcher
        self.settings_provider = settings_provider
        self.store = store or DocumentStore
        self.registry = registry or PermitRegistry
    
    def _notices(self, today, wanted, settings):
        # employee names are memoised for this call only
        names = {e.employee_id: e.employee_name for e in Employee.query.all()}
        notices = []
        for category in DOCUMENT_TYPES:
            warning_days = settings.warning_days_for(category)
            for document in self.store.list(category, approval_status='approved'):
                if classify(document.valid_until, today, warning_days) != wanted:
                    continue
                notices.append(ExpirationNotice(
                    type=category,
                    document_id=str(document.id),
                    employee_id=document.employee_id,
                    employee_name=names.get(document.employee_id, document.employee_id),
                    document_number=document.document_number,
                    expiration_date=document.valid_until,
                    days_until_expiration=(document.valid_until - today).days,
                ))
        return notices
    
    def get_expiring_documents(self, today=None, settings=None):
        """Approved, visible documents ending within their type's warning window."""
        settings = settings or self.settings_provider.get()
        return self._notices(today or datetime.utcnow().date(), 'expiring', settings)
    
    def get_expired_documents(self, today=None, settings=None):
        settings = settings or self.settings_provider.get()
        return self._notices(today or datetime.utcnow().date(), 'expired', settings)
    
    def get_escalation_targets(self, today=None, settings=None):
        """Expired documents overdue by at least the admin escalation threshold."""
        settings = settings or self.settings_provider.get()
        return [
            notice for notice in self.get_expired_documents(today, settings)
            if needs_escalation(notice, settings.admin_escalation_days)
        ]
    
    def _owner_pass(self, notices, notification_type, build_template, now):
        result = PassResult()
        for notice in notices:
            result.processed += 1
            outcome = self.dispatcher.dispatch_once(
                notice.employee_id,
                build_template(notice),
                notification_type,
                document_type=notice.type,
                document_id=notice.document_id,
                now=now,
            )
            result.count(outcome)
            if outcome == 'failed':
                logger.error(f"Failed to send {notification_type} for {notice.type} {notice.document_number}")
        return result
    
    def send_expiration_warnings(self, now=None, settings=None):
        now = now or datetime.utcnow()
        notices = self.get_expiring_documents(now.date(), settings)
        logger.info(f"Found {len(notices)} expiring documents")
        return self._owner_pass(notices, 'expiration_warning', expiration_warning_template, now)
    
    def send_expired_alerts(self, now=None, settings=None):
        now = now or datetime.utcnow()
        notices = self.get_expired_documents(now.date(), settings)
        logger.info(f"Found {len(notices)} expired documents")
        return self._owner_pass(notices, 'expiration_alert', expired_template, now)
    
    def send_admin_escalations(self, now=None, settings=None):
        """One digest per admin per day listing every document past the grace period."""
        now = now or datetime.utcnow()
        targets = self.get_escalation_targets(now.date(), settings)
        result = PassResult(documents=len(targets))
        if not targets:
            logger.info("No documents require admin escalation yet")
            return result
        
        template = admin_escalation_template(targets)
        for admin in User.get_admins():
            result.processed += 1
            result.count(self.dispatcher.dispatch_once(
                admin.email, template, 'admin_escalation',
                document_id=ESCALATION_DEDUP_KEY, now=now,
            ))
        logger.info(f"Sent admin escalation to {result.sent} administrator(s) ({len(targets)} documents)")
        return result
    
    def run(self, now=None):
        """Run every pass once. Each pass keeps going past individual failures."""
        now = now or datetime.utcnow()
        logger.info(f"Expiration monitor starting at {now.isoformat()}")
        settings = self.settings_provider.get()
        
        report = {
            'warnings': self.send_expiration_warnings(now, settings).to_dict(),
            'expired': self.send_expired_alerts(now, settings).to_dict(),
            'escalations': self.send_admin_escalations(now, settings).to_dict(),
        }
        log_audit_event('expiration_monitor_run', **report)
        logger.info(f"Expiration monitor completed: {report}")
        return report
    
    def expire_lapsed_permits(self, today=None):
        return self.registry.expire_lapsed(today)
    
    def summary(self, today=None):
        """Counts and lists for the monitoring view."""
        today = today or datetime.utcnow().date()
        settings = self.settings_provider.get()
        expiring = sorted(self.get_expiring_documents(today, settings), key=lambda n: n.days_until_expiration)
        expired = sorted(self.get_expired_documents(today, settings), key=lambda n: n.days_until_expiration)
        return {
            'expiring_count': len(expiring),
            'expired_count': len(expired),
            'expiring_by_type': {t: sum(1 for n in expiring if n.type == t) for t in DOCUMENT_TYPES},
            'expired_by_type': {t: sum(1 for n in expired if n.type == t) for t in DOCUMENT_TYPES},
            'expiring': [n.to_dict() for n in expiring],
            'expired': [n.to_dict() for n in expired],
            'settings': settings.to_dict(),
        }
