from datetime import datetime, timedelta

import pytest

from commute_permits import db
from commute_permits.models import NotificationRecord, User
from commute_permits.services import init_services
from commute_permits.services.expiration import ESCALATION_DEDUP_KEY, classify
from commute_permits.services.permit_registry import PermitRegistry
from commute_permits.services.settings import ExpirationSettings

from conftest import FakeMessenger, days_from_today, utc_today


def records(notification_type, status=None):
    query = NotificationRecord.query.filter_by(notification_type=notification_type)
    if status:
        query = query.filter_by(status=status)
    return query.all()


def test_classify_boundaries():
    today = utc_today()
    assert classify(today - timedelta(days=1), today, 30) == 'expired'
    assert classify(today, today, 30) == 'expiring'
    assert classify(today + timedelta(days=30), today, 30) == 'expiring'
    assert classify(today + timedelta(days=31), today, 30) is None


def test_warning_window_follows_settings(services, make_employee, make_license):
    make_employee()
    make_license(expires_in=7)
    
    assert len(services.monitor.get_expiring_documents()) == 1
    
    services.settings.update({'license_warning_days': 5}, updated_by='admin@example.test')
    assert services.monitor.get_expiring_documents() == []
    assert services.monitor.get_expired_documents() == []


def test_only_approved_visible_documents_are_monitored(services, make_employee, make_license,
                                                       make_vehicle, make_insurance):
    make_employee()
    make_license(expires_in=3, status='pending')
    make_vehicle(expires_in=3, deleted_flag=True)
    make_insurance(expires_in=-3, status='rejected')
    
    assert services.monitor.get_expiring_documents() == []
    assert services.monitor.get_expired_documents() == []


def test_escalation_threshold(services, make_employee, make_vehicle):
    make_employee()
    make_vehicle(expires_in=-10)
    
    targets = services.monitor.get_escalation_targets(settings=ExpirationSettings(admin_escalation_days=7))
    assert [t.days_overdue for t in targets] == [10]
    
    assert services.monitor.get_escalation_targets(settings=ExpirationSettings(admin_escalation_days=14)) == []


def test_no_digest_one_day_before_threshold(services, messenger, admin, make_employee, make_insurance):
    make_employee()
    make_insurance(expires_in=-6)
    
    result = services.monitor.send_admin_escalations()
    
    assert result.documents == 0
    assert messenger.to(admin.email) == []
    assert records('admin_escalation') == []


def test_one_digest_per_admin(services, messenger, admin, make_employee, make_insurance, make_license):
    db.session.add(User(email='second@example.test', name='Admin Two', role='admin'))
    db.session.add(User(email='clerk@example.test', name='Clerk', role='applicant'))
    db.session.commit()
    make_employee()
    make_insurance(expires_in=-7)
    make_license(expires_in=-20)
    
    result = services.monitor.send_admin_escalations()
    
    assert result.documents == 2
    assert result.sent == 2
    assert len(messenger.to(admin.email)) == 1
    assert len(messenger.to('second@example.test')) == 1
    assert messenger.to('clerk@example.test') == []
    digest = messenger.to(admin.email)[0]
    assert '(2)' in digest.title
    assert all(r.document_id == ESCALATION_DEDUP_KEY for r in records('admin_escalation'))


def test_second_run_within_window_sends_nothing(services, messenger, admin, make_employee,
                                                make_license, make_vehicle):
    make_employee()
    make_license(expires_in=7)
    make_vehicle(expires_in=-10)
    now = datetime.utcnow()
    
    first = services.monitor.run(now=now)
    second = services.monitor.run(now=now + timedelta(hours=23))
    
    assert first['warnings']['sent'] == 1
    assert first['expired']['sent'] == 1
    assert first['escalations']['sent'] == 1
    assert second['warnings'] == {'processed': 1, 'sent': 0, 'skipped': 1, 'failed': 0, 'documents': 0}
    assert second['expired']['skipped'] == 1
    assert second['escalations']['skipped'] == 1
    assert len(records('expiration_warning', 'sent')) == 1
    assert len(records('expiration_alert', 'sent')) == 1
    assert len(records('admin_escalation', 'sent')) == 1
    assert len(messenger.delivered) == 3


def test_run_after_window_sends_again(services, make_employee, make_license):
    make_employee()
    make_license(expires_in=7)
    now = datetime.utcnow()
    
    services.monitor.run(now=now)
    later = services.monitor.run(now=now + timedelta(hours=25))
    
    assert later['warnings']['sent'] == 1
    assert len(records('expiration_warning', 'sent')) == 2


def test_failed_delivery_is_recorded_and_not_retried(app, renderer, make_employee, make_license, make_vehicle):
    services = init_services(app, messenger=FakeMessenger(fail_for={'E001'}), renderer=renderer)
    make_employee()
    make_employee(employee_id='E002', name='Hanako Sato')
    make_license(expires_in=7)
    make_license(employee_id='E002', expires_in=7)
    now = datetime.utcnow()
    
    report = services.monitor.run(now=now)
    
    assert report['warnings']['failed'] == 1
    assert report['warnings']['sent'] == 1
    failed = records('expiration_warning', 'failed')
    assert [r.recipient_id for r in failed] == ['E001']
    
    again = services.monitor.run(now=now + timedelta(hours=1))
    assert again['warnings']['skipped'] == 2


def test_collaborator_exception_does_not_abort_pass(app, renderer, make_employee, make_license):
    class FlakyMessenger(FakeMessenger):
        def deliver(self, recipient_id, template):
            if recipient_id == 'E001':
                raise ConnectionError('smtp down')
            return super().deliver(recipient_id, template)
    
    messenger = FlakyMessenger()
    services = init_services(app, messenger=messenger, renderer=renderer)
    make_employee()
    make_employee(employee_id='E002', name='Hanako Sato')
    make_license(expires_in=5)
    make_license(employee_id='E002', expires_in=5)
    
    result = services.monitor.send_expiration_warnings()
    
    assert (result.sent, result.failed) == (1, 1)
    assert len(messenger.to('E002')) == 1


def test_notice_carries_employee_name(services, make_employee, make_vehicle):
    make_employee(name='Jiro Suzuki')
    vehicle = make_vehicle(expires_in=3)
    
    notice = services.monitor.get_expiring_documents()[0]
    
    assert notice.employee_name == 'Jiro Suzuki'
    assert notice.document_id == str(vehicle.id)
    assert notice.document_number == vehicle.vehicle_number
    assert notice.days_until_expiration == 3


def test_summary_counts(services, make_employee, make_license, make_vehicle, make_insurance):
    make_employee()
    make_license(expires_in=10)
    make_vehicle(expires_in=-2)
    make_insurance(expires_in=90)
    
    summary = services.monitor.summary()
    
    assert summary['expiring_count'] == 1
    assert summary['expired_count'] == 1
    assert summary['expiring_by_type'] == {'license': 1, 'vehicle': 0, 'insurance': 0}
    assert summary['expired_by_type']['vehicle'] == 1
    assert summary['settings']['admin_escalation_days'] == 7


@pytest.mark.parametrize('expires_in, expected', [(-1, 1), (0, 0)])
def test_expire_lapsed_permits(services, eligible_employee, expires_in, expected):
    employee, _, vehicle, _ = eligible_employee
    PermitRegistry.create(employee, vehicle, days_from_today(expires_in))
    
    assert services.monitor.expire_lapsed_permits() == expected
