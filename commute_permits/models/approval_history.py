from commute_permits import db
from datetime import datetime


class ApprovalHistory(db.Model):
    """Append-only audit trail of approval decisions."""
    __tablename__ = 'approval_history'
    
    id = db.Column(db.Integer, primary_key=True)
    document_type = db.Column(db.String(20), nullable=False)
    document_id = db.Column(db.Integer, nullable=False, index=True)
    employee_id = db.Column(db.String(32), nullable=False, index=True)
    employee_name = db.Column(db.String(100), nullable=True)
    action = db.Column(db.Enum('approved', 'rejected', name='approval_actions'), nullable=False)
    approver_id = db.Column(db.String(120), nullable=False)
    approver_name = db.Column(db.String(100), nullable=True)
    reason = db.Column(db.Text, nullable=True)
    timestamp = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    
    @classmethod
    def get_recent(cls, employee_id=None, limit=100):
        query = cls.query
        if employee_id:
            query = query.filter_by(employee_id=employee_id)
        return query.order_by(cls.timestamp.desc(), cls.id.desc()).limit(limit).all()
    
    def to_dict(self):
        return {
            'id': self.id,
            'document_type': self.document_type,
            'document_id': str(self.document_id),
            'employee_id': self.employee_id,
            'employee_name': self.employee_name,
            'action': self.action,
            'approver_id': self.approver_id,
            'approver_name': self.approver_name,
            'reason': self.reason,
            'timestamp': self.timestamp.isoformat(),
        }
    
    def __repr__(self):
        return f'<ApprovalHistory {self.action} {self.document_type}:{self.document_id}>'
