"""Message templates for owner and admin notifications."""

from dataclasses import dataclass

DOCUMENT_LABELS = {
    'license': "Driver's license",
    'vehicle': 'Vehicle registration',
    'insurance': 'Insurance policy',
}


@dataclass(frozen=True)
class NotificationTemplate:
    title: str
    content: str


@dataclass(frozen=True)
class ExpirationNotice:
    """One document found by the expiration monitor."""
    type: str
    document_id: str
    employee_id: str
    employee_name: str
    document_number: str
    expiration_date: object
    days_until_expiration: int
    
    @property
    def days_overdue(self):
        return max(-self.days_until_expiration, 0)
    
    def to_dict(self):
        return {
            'type': self.type,
            'document_id': self.document_id,
            'employee_id': self.employee_id,
            'employee_name': self.employee_name,
            'document_number': self.document_number,
            'expiration_date': self.expiration_date.isoformat(),
            'days_until_expiration': self.days_until_expiration,
        }


def expiration_warning_template(notice):
    label = DOCUMENT_LABELS[notice.type]
    return NotificationTemplate(
        title=f"[Important] Your {label.lower()} expires soon",
        content=(
            f"Document: {label}\n"
            f"Number: {notice.document_number}\n"
            f"Expires on: {notice.expiration_date.isoformat()}\n"
            f"Days remaining: {notice.days_until_expiration}\n\n"
            "Please renew it soon and submit the renewed document for approval."
        ),
    )


def expired_template(notice):
    label = DOCUMENT_LABELS[notice.type]
    return NotificationTemplate(
        title=f"[Urgent] Your {label.lower()} has expired",
        content=(
            f"Document: {label}\n"
            f"Number: {notice.document_number}\n"
            f"Expired on: {notice.expiration_date.isoformat()}\n"
            f"Days overdue: {notice.days_overdue}\n\n"
            "Commuting by car is not permitted with an expired document. "
            "Renew it and submit the renewed document for approval."
        ),
    )


def admin_escalation_template(notices):
    lines = '\n'.join(
        f"- {DOCUMENT_LABELS[n.type]} ({n.document_number}, {n.employee_name}): "
        f"{n.expiration_date.isoformat()} - {n.days_overdue} day(s) overdue"
        for n in notices
    )
    return NotificationTemplate(
        title=f"[Admin] Expired documents need follow-up ({len(notices)})",
        content=(
            "The following documents have been expired beyond the grace period.\n\n"
            f"{lines}\n\n"
            "Please ask each employee to renew and resubmit."
        ),
    )


def approval_template(category, document_number, all_approved):
    label = DOCUMENT_LABELS[category]
    content = f"Your {label.lower()} ({document_number}) has been approved."
    if all_approved:
        content += "\nAll documents are approved. Your commuting permit has been issued."
    return NotificationTemplate(title=f"{label} approved", content=content)


def rejection_template(category, document_number, reason):
    label = DOCUMENT_LABELS[category]
    return NotificationTemplate(
        title=f"{label} rejected",
        content=(
            f"Your {label.lower()} ({document_number}) was rejected.\n"
            f"Reason: {reason}\n\n"
            "Please correct it and submit again."
        ),
    )
