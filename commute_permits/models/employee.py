from commute_permits import db
from datetime import datetime


class Employee(db.Model):
    __tablename__ = 'employees'
    
    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.String(32), unique=True, nullable=False, index=True)
    employee_name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), nullable=True)
    department = db.Column(db.String(100), nullable=True)
    employment_status = db.Column(db.Enum('active', 'resigned', name='employment_status'),
                                  default='active', nullable=False)
    hire_date = db.Column(db.Date, nullable=True)
    resignation_date = db.Column(db.Date, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    @classmethod
    def find(cls, employee_id):
        return cls.query.filter_by(employee_id=employee_id).first()
    
    def __repr__(self):
        return f'<Employee {self.employee_id}>'
