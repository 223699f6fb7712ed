"""Service wiring: one set of collaborators per application."""

from dataclasses import dataclass
from flask import current_app

from commute_permits.services.approval import ApprovalService
from commute_permits.services.bulk_approval import BulkApprovalService
from commute_permits.services.eligibility import EligibilityService
from commute_permits.services.expiration import ExpirationMonitor
from commute_permits.services.notifications import DispatchThrottle, MailMessenger, NotificationDispatcher
from commute_permits.services.settings import SettingsProvider
from commute_permits.utils.permit_renderer import PermitRenderer

EXTENSION_KEY = 'commute_permits.services'


@dataclass
class ServiceRegistry:
    settings: SettingsProvider
    approval: ApprovalService
    eligibility: EligibilityService
    dispatcher: NotificationDispatcher
    bulk: BulkApprovalService
    monitor: ExpirationMonitor


def build_services(app, messenger=None, renderer=None, throttle=None):
    """Construct the service graph; collaborators can be swapped (tests pass fakes)."""
    config = app.config
    settings = SettingsProvider.from_config(config)
    renderer = renderer or PermitRenderer(
        config['PERMIT_STORAGE_DIR'],
        font_path=config.get('PERMIT_FONT_PATH'),
        company_name=config.get('ISSUING_COMPANY', ''),
    )
    dispatcher = NotificationDispatcher(
        messenger or MailMessenger(),
        throttle=throttle or DispatchThrottle(config['NOTIFICATION_RATE_LIMIT']),
        dedup_hours=config['NOTIFICATION_DEDUP_HOURS'],
    )
    approval = ApprovalService()
    eligibility = EligibilityService(renderer, base_url=config.get('PUBLIC_BASE_URL') or '')
    bulk = BulkApprovalService(
        app, approval, eligibility, dispatcher,
        max_items=config['BULK_APPROVAL_MAX_ITEMS'],
        batch_size=config['BULK_APPROVAL_BATCH_SIZE'],
        max_workers=config['BULK_APPROVAL_MAX_WORKERS'],
    )
    monitor = ExpirationMonitor(dispatcher, settings)
    return ServiceRegistry(settings, approval, eligibility, dispatcher, bulk, monitor)


def init_services(app, **collaborators):
    app.extensions[EXTENSION_KEY] = build_services(app, **collaborators)
    return app.extensions[EXTENSION_KEY]


def get_services(app=None):
    app = app or current_app._get_current_object()
    return app.extensions[EXTENSION_KEY]
