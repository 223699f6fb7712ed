from datetime import datetime, timedelta

import pytest

from commute_permits import create_app, db
from commute_permits.models import (
    DriversLicense, Employee, InsurancePolicy, User, VehicleRegistration,
)
from commute_permits.services import init_services
from commute_permits.utils.error_handler import ArtifactRenderError


def utc_today():
    return datetime.utcnow().date()


def days_from_today(days):
    return utc_today() + timedelta(days=days)


class FakeMessenger:
    """Records deliveries; recipients in ``fail_for`` always fail."""
    
    def __init__(self, fail_for=()):
        self.delivered = []
        self.fail_for = set(fail_for)
    
    def deliver(self, recipient_id, template):
        if recipient_id in self.fail_for:
            return False
        self.delivered.append((recipient_id, template))
        return True
    
    def to(self, recipient_id):
        return [template for rid, template in self.delivered if rid == recipient_id]


class FakeRenderer:
    def __init__(self, fail=False):
        self.fail = fail
        self.rendered = []
    
    def render(self, artifact):
        if self.fail:
            raise ArtifactRenderError("renderer unavailable")
        self.rendered.append(artifact)
        return f"permit_{artifact.permit_id}.pdf"
    
    def path_for(self, file_key):
        return file_key


@pytest.fixture
def app(tmp_path):
    app = create_app('testing', {
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'test.db'}",
        'LOG_DIR': str(tmp_path / 'logs'),
        'PERMIT_STORAGE_DIR': str(tmp_path / 'permits'),
    })
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def messenger():
    return FakeMessenger()


@pytest.fixture
def renderer():
    return FakeRenderer()


@pytest.fixture
def services(app, messenger, renderer):
    return init_services(app, messenger=messenger, renderer=renderer)


@pytest.fixture
def admin(app):
    user = User(email='admin@example.test', name='Admin One', role='admin')
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def client(app, services, admin):
    client = app.test_client()
    with client.session_transaction() as session:
        session['_user_id'] = str(admin.id)
        session['_fresh'] = True
    return client


@pytest.fixture
def anonymous_client(app, services):
    return app.test_client()


@pytest.fixture
def make_employee(app):
    def _make(employee_id='E001', name='Taro Yamada', email=None):
        employee = Employee(
            employee_id=employee_id,
            employee_name=name,
            email=email or f"{employee_id.lower()}@example.test",
            department='Sales',
        )
        db.session.add(employee)
        db.session.commit()
        return employee
    return _make


@pytest.fixture
def make_license(app):
    def _make(employee_id='E001', expires_in=365, status='approved', approved_at=None, **fields):
        document = DriversLicense(
            employee_id=employee_id,
            license_number=fields.pop('license_number', f"L-{employee_id}"),
            expiration_date=days_from_today(expires_in),
            approval_status=status,
            approved_at=approved_at or (datetime.utcnow() if status == 'approved' else None),
            **fields
        )
        db.session.add(document)
        db.session.commit()
        return document
    return _make


@pytest.fixture
def make_vehicle(app):
    counter = {'n': 0}
    
    def _make(employee_id='E001', expires_in=200, status='approved', **fields):
        counter['n'] += 1
        document = VehicleRegistration(
            employee_id=employee_id,
            vehicle_number=fields.pop('vehicle_number', f"SHINAGAWA 300 A {counter['n']:04d}"),
            manufacturer=fields.pop('manufacturer', 'Toyota'),
            model_name=fields.pop('model_name', 'Prius'),
            inspection_expiration_date=days_from_today(expires_in),
            approval_status=status,
            approved_at=datetime.utcnow() if status == 'approved' else None,
            **fields
        )
        db.session.add(document)
        db.session.commit()
        return document
    return _make


@pytest.fixture
def make_insurance(app):
    def _make(employee_id='E001', expires_in=300, status='approved', approved_at=None, **fields):
        document = InsurancePolicy(
            employee_id=employee_id,
            policy_number=fields.pop('policy_number', f"P-{employee_id}"),
            insurance_company='Example Mutual',
            coverage_start_date=days_from_today(-65),
            coverage_end_date=days_from_today(expires_in),
            approval_status=status,
            approved_at=approved_at or (datetime.utcnow() if status == 'approved' else None),
            **fields
        )
        db.session.add(document)
        db.session.commit()
        return document
    return _make


@pytest.fixture
def eligible_employee(make_employee, make_license, make_vehicle, make_insurance):
    """Employee E001 with one approved document in every category."""
    employee = make_employee()
    license = make_license(expires_in=365)
    vehicle = make_vehicle(expires_in=200)
    insurance = make_insurance(expires_in=300)
    return employee, license, vehicle, insurance
