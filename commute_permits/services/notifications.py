"""Notification dispatch, delivery throttling and the append-only dedup log."""

import time
from datetime import datetime, timedelta

from flask_mail import Message
from limits import parse
from limits.storage import MemoryStorage
from limits.strategies import MovingWindowRateLimiter

from commute_permits import db, mail
from commute_permits.models import Employee, NotificationRecord, User
from commute_permits.utils.logging_config import get_logger

logger = get_logger(__name__)


class MailMessenger:
    """Messaging collaborator delivering notifications by email through Flask-Mail.
    
    Recipients are employee ids (document owners) or email addresses (admins).
    """
    
    def resolve_address(self, recipient_id):
        if '@' in recipient_id:
            return recipient_id
        employee = Employee.find(recipient_id)
        if employee and employee.email:
            return employee.email
        user = User.query.filter_by(employee_id=recipient_id).first()
        return user.email if user else None
    
    def deliver(self, recipient_id, template):
        """Send one message; returns False instead of raising on failure."""
        address = self.resolve_address(recipient_id)
        if not address:
            logger.warning(f"No email address for recipient {recipient_id}")
            return False
        try:
            msg = Message(template.title, recipients=[address])
            msg.body = template.content
            mail.send(msg)
        except Exception as e:
            logger.error(f"Error sending email to {address}: {e}", exc_info=True)
            return False
        return True


class DispatchThrottle:
    """Moving-window rate limiter shared by every sequential dispatch."""
    
    def __init__(self, rate='5/second', key='notification-dispatch'):
        self.item = parse(rate)
        self.key = key
        self.limiter = MovingWindowRateLimiter(MemoryStorage())
    
    def acquire(self):
        """Block until one more dispatch fits in the window."""
        while not self.limiter.hit(self.item, self.key):
            stats = self.limiter.get_window_stats(self.item, self.key)
            time.sleep(max(stats.reset_time - time.time(), 0.01))


class NotificationDispatcher:
    """Sends structured messages and records every outcome in the notification log."""
    
    def __init__(self, messenger, throttle=None, dedup_hours=24):
        self.messenger = messenger
        self.throttle = throttle
        self.dedup_window = timedelta(hours=dedup_hours)
    
    def send(self, recipient_id, template, notification_type, document_type=None,
             document_id=None, now=None):
        """Deliver and log a message. Never raises; False means delivery failed."""
        if self.throttle is not None:
            self.throttle.acquire()
        
        try:
            success = bool(self.messenger.deliver(recipient_id, template))
        except Exception as e:
            logger.error(f"Messaging collaborator failed for {recipient_id}: {e}", exc_info=True)
            success = False
        
        try:
            db.session.add(NotificationRecord(
                recipient_id=recipient_id,
                notification_type=notification_type,
                document_type=document_type,
                document_id=str(document_id) if document_id is not None else None,
                title=template.title,
                message=template.content,
                sent_at=now or datetime.utcnow(),
                status='sent' if success else 'failed',
            ))
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            logger.error(f"Could not record notification for {recipient_id}: {e}", exc_info=True)
        
        return success
    
    def is_duplicate(self, recipient_id, document_id, notification_type, now=None):
        """Whether a matching notification was logged within the dedup window.
        
        Read-then-write: two concurrent dispatchers may both see no record.
        """
        since = (now or datetime.utcnow()) - self.dedup_window
        query = NotificationRecord.query.filter(
            NotificationRecord.recipient_id == recipient_id,
            NotificationRecord.notification_type == notification_type,
            NotificationRecord.sent_at > since,
        )
        if document_id is None:
            query = query.filter(NotificationRecord.document_id.is_(None))
        else:
            query = query.filter(NotificationRecord.document_id == str(document_id))
        return db.session.query(query.exists()).scalar()
    
    def dispatch_once(self, recipient_id, template, notification_type, document_type=None,
                      document_id=None, now=None):
        """Send unless already logged within the window. Returns sent, failed or skipped."""
        if self.is_duplicate(recipient_id, document_id, notification_type, now=now):
            return 'skipped'
        ok = self.send(recipient_id, template, notification_type, document_type=document_type,
                       document_id=document_id, now=now)
        return 'sent' if ok else 'failed'


class NotificationHistory:
    """Read side of the notification log."""
    
    @staticmethod
    def get_history(recipient_id=None, limit=200):
        query = NotificationRecord.query
        if recipient_id:
            query = query.filter_by(recipient_id=recipient_id)
        return query.order_by(NotificationRecord.sent_at.desc(), NotificationRecord.id.desc()).limit(limit).all()
    
    @staticmethod
    def get_stats(recipient_id=None):
        from sqlalchemy import func
        
        query = db.session.query(
            NotificationRecord.notification_type,
            NotificationRecord.status,
            func.count(NotificationRecord.id),
        )
        if recipient_id:
            query = query.filter(NotificationRecord.recipient_id == recipient_id)
        rows = query.group_by(NotificationRecord.notification_type, NotificationRecord.status).all()
        
        stats = {'total': 0, 'sent': 0, 'failed': 0, 'by_type': {}}
        for notification_type, status, count in rows:
            stats['total'] += count
            stats[status] += count
            stats['by_type'][notification_type] = stats['by_type'].get(notification_type, 0) + count
        return stats
