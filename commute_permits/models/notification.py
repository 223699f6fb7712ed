from commute_permits import db
from datetime import datetime


class NotificationRecord(db.Model):
    """Append-only log of dispatched notifications; the only dedup source."""
    __tablename__ = 'notification_records'
    
    id = db.Column(db.Integer, primary_key=True)
    recipient_id = db.Column(db.String(120), nullable=False, index=True)
    notification_type = db.Column(db.String(30), nullable=False, index=True)
    document_type = db.Column(db.String(20), nullable=True)
    document_id = db.Column(db.String(64), nullable=True, index=True)
    title = db.Column(db.String(200), nullable=False)
    message = db.Column(db.Text, nullable=False)
    sent_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    status = db.Column(db.Enum('sent', 'failed', name='notification_status'), nullable=False)
    
    def to_dict(self):
        return {
            'id': self.id,
            'recipient_id': self.recipient_id,
            'notification_type': self.notification_type,
            'document_type': self.document_type,
            'document_id': self.document_id,
            'title': self.title,
            'message': self.message,
            'sent_at': self.sent_at.isoformat(),
            'status': self.status,
        }
    
    def __repr__(self):
        return f'<NotificationRecord {self.notification_type} to {self.recipient_id} ({self.status})>'
