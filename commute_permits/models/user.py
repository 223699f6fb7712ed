from commute_permits import db
from flask_login import UserMixin
from datetime import datetime


class User(db.Model, UserMixin):
    __tablename__ = 'users'
    
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    employee_id = db.Column(db.String(32), nullable=True)
    role = db.Column(db.Enum('applicant', 'admin', name='user_roles'), nullable=False, default='applicant')
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    @classmethod
    def get_admins(cls):
        """All active users holding admin-level permission."""
        return cls.query.filter_by(role='admin', is_active=True).order_by(cls.id).all()
    
    def __repr__(self):
        return f'<User {self.email}>'
