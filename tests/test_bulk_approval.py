import threading
from types import SimpleNamespace

import pytest

from commute_permits import db
from commute_permits.models import NotificationRecord, Permit
from commute_permits.services.approval import Actor, ApprovalOutcome
from commute_permits.services.bulk_approval import BulkApprovalService
from commute_permits.utils.error_handler import ValidationError

ADMIN = Actor(id='admin@example.test', name='Admin One')


@pytest.fixture
def pending_set(make_employee, make_license, make_vehicle, make_insurance):
    make_employee()
    return (
        make_license(status='pending'),
        make_vehicle(status='pending'),
        make_insurance(status='pending'),
    )


def test_missing_item_fails_alone(services, messenger, pending_set):
    license, _, insurance = pending_set
    items = [
        {'id': str(license.id), 'type': 'license'},
        {'id': '9999', 'type': 'vehicle'},
        {'id': str(insurance.id), 'type': 'insurance'},
    ]
    
    result = services.bulk.submit(items, ADMIN)
    db.session.expire_all()
    
    assert [r.success for r in result.results] == [True, False, True]
    assert result.results[1].error
    assert result.to_dict()['summary'] == {'total': 3, 'success': 2, 'failed': 1}
    assert not result.to_dict()['success']
    assert license.approval_status == 'approved'
    assert insurance.approval_status == 'approved'
    assert len(messenger.to('E001')) == 2


def test_completing_the_set_issues_a_permit(services, messenger, pending_set):
    items = [{'id': str(d.id), 'type': d.document_type} for d in pending_set]
    
    result = services.bulk.submit(items, ADMIN)
    db.session.expire_all()
    
    assert result.success
    assert Permit.query.filter_by(status='valid').count() == 1
    approvals = NotificationRecord.query.filter_by(notification_type='approval').all()
    assert len(approvals) == 3
    assert any('permit has been issued' in t.content for t in messenger.to('E001'))


def test_results_keep_request_order_across_batches(app, services, make_employee, make_vehicle):
    make_employee()
    vehicles = [make_vehicle(status='pending') for _ in range(7)]
    bulk = BulkApprovalService(app, services.approval, services.eligibility, services.dispatcher,
                               batch_size=3, max_workers=1)
    
    result = bulk.submit([{'id': v.id, 'type': 'vehicle'} for v in vehicles], ADMIN)
    
    assert [r.id for r in result.results] == [str(v.id) for v in vehicles]
    assert result.success_count == 7


def test_invalid_type_is_an_item_failure(services, pending_set):
    license = pending_set[0]
    result = services.bulk.submit([
        {'id': str(license.id), 'type': 'passport'},
        {'id': str(license.id), 'type': 'license'},
    ], ADMIN)
    
    assert result.results[0].to_dict() == {'id': str(license.id), 'type': 'passport',
                                           'success': False, 'error': 'Invalid type'}
    assert result.results[1].to_dict() == {'id': str(license.id), 'type': 'license', 'success': True}


@pytest.mark.parametrize('items, action', [
    ([], 'approve'),
    (None, 'approve'),
    ([{'id': '1', 'type': 'license'}] * 51, 'approve'),
    ([{'id': '1', 'type': 'license'}], 'reject'),
    ([{'id': '1', 'type': 'license'}], 'archive'),
    ([{'type': 'license'}], 'approve'),
])
def test_invalid_requests_have_no_side_effects(services, messenger, pending_set, items, action):
    with pytest.raises(ValidationError):
        services.bulk.submit(items, ADMIN, action=action)
    
    db.session.expire_all()
    assert all(d.approval_status == 'pending' for d in pending_set)
    assert messenger.delivered == []


def test_fifty_items_is_the_limit(services, make_employee, make_vehicle):
    make_employee()
    vehicle = make_vehicle(status='pending')
    
    result = services.bulk.submit([{'id': vehicle.id, 'type': 'vehicle'}] * 50, ADMIN)
    
    assert result.to_dict()['summary']['total'] == 50
    assert result.success
    assert NotificationRecord.query.filter_by(notification_type='approval').count() == 50


def test_unexpected_error_is_captured_per_item(app, services, pending_set):
    class ExplodingEligibility:
        def check_and_issue(self, employee_id, base_url=None):
            raise RuntimeError('store offline')
    
    bulk = BulkApprovalService(app, services.approval, ExplodingEligibility(), services.dispatcher)
    license = pending_set[0]
    
    result = bulk.submit([{'id': license.id, 'type': 'license'}], ADMIN)
    
    assert result.results[0].success is False
    assert result.results[0].error == 'store offline'


def test_already_approved_item_still_notifies(services, messenger, make_employee, make_license):
    make_employee()
    license = make_license(status='approved')
    
    result = services.bulk.submit([{'id': license.id, 'type': 'license'}], ADMIN)
    
    assert result.success
    assert len(messenger.to('E001')) == 1


class BarrierApproval:
    """Approves nothing in the store; every call waits for the whole batch."""
    
    def __init__(self, parties):
        self.barrier = threading.Barrier(parties, timeout=10)
        self.threads = set()
        self.lock = threading.Lock()
    
    def approve(self, category, document_id, actor):
        with self.lock:
            self.threads.add(threading.get_ident())
        self.barrier.wait()
        document = SimpleNamespace(employee_id=f"E{document_id}", document_number=f"N-{document_id}", id=document_id)
        return ApprovalOutcome(document, changed=True)


class NoopEligibility:
    def check_and_issue(self, employee_id, base_url=None):
        return SimpleNamespace(errors=[])


def test_batch_items_run_concurrently_in_request_order(app, messenger, services):
    approval = BarrierApproval(parties=4)
    bulk = BulkApprovalService(app, approval, NoopEligibility(), services.dispatcher,
                               batch_size=4, max_workers=4)
    items = [{'id': str(n), 'type': 'license'} for n in range(1, 9)]
    
    result = bulk.submit(items, ADMIN)
    
    # a broken barrier would surface as failed items
    assert [r.error for r in result.results] == [None] * 8
    assert [r.id for r in result.results] == [str(n) for n in range(1, 9)]
    assert len(approval.threads) >= 4
    assert threading.get_ident() not in approval.threads
    assert sorted(rid for rid, _ in messenger.delivered) == sorted(f"E{n}" for n in range(1, 9))
    assert NotificationRecord.query.filter_by(notification_type='approval').count() == 8
