"""Document store adapter: per-category access to licenses, vehicles and insurance."""

from datetime import datetime
from commute_permits import db
from commute_permits.models import DOCUMENT_MODELS
from commute_permits.utils.error_handler import ValidationError


def resolve_model(category):
    """Map a category name (license, vehicle, insurance) to its model class."""
    model = DOCUMENT_MODELS.get(category)
    if model is None:
        raise ValidationError(f"Invalid document type: {category}")
    return model


def parse_document_id(document_id):
    """Record ids travel as strings on the wire; anything non-numeric matches nothing."""
    if isinstance(document_id, int):
        return document_id
    text = str(document_id or '').strip()
    return int(text) if text.isdigit() else None


class DocumentStore:
    """CRUD over the three document categories keyed by employee id.
    
    Soft-deleted rows are invisible unless ``include_deleted`` is passed.
    """
    
    @staticmethod
    def list(category, employee_id=None, approval_status=None, include_deleted=False):
        """List documents of a category, optionally filtered by owner and status."""
        model = resolve_model(category)
        query = model.query
        if not include_deleted:
            query = query.filter_by(deleted_flag=False)
        if employee_id is not None:
            query = query.filter_by(employee_id=employee_id)
        if approval_status is not None:
            query = query.filter_by(approval_status=approval_status)
        return query.order_by(model.id).all()
    
    @staticmethod
    def get(category, document_id, include_deleted=False):
        """Fetch a single document or None."""
        model = resolve_model(category)
        pk = parse_document_id(document_id)
        if pk is None:
            return None
        document = db.session.get(model, pk)
        if document is None or (document.deleted_flag and not include_deleted):
            return None
        return document
    
    @staticmethod
    def create(category, **fields):
        """Create a document; new documents always start pending."""
        model = resolve_model(category)
        fields.setdefault('approval_status', 'pending')
        document = model(**fields)
        db.session.add(document)
        db.session.commit()
        return document
    
    @staticmethod
    def update(category, document_id, **fields):
        """Update fields on a visible document and return it (None if missing)."""
        document = DocumentStore.get(category, document_id)
        if document is None:
            return None
        for key, value in fields.items():
            setattr(document, key, value)
        db.session.commit()
        return document
    
    @staticmethod
    def soft_delete(category, document_id):
        """Flag a document as deleted while keeping it for audit."""
        document = DocumentStore.get(category, document_id)
        if document is None:
            return False
        document.deleted_flag = True
        document.deleted_at = datetime.utcnow()
        db.session.commit()
        return True
    
    @staticmethod
    def restore(category, document_id):
        """Clear the soft-delete flag of a document."""
        document = DocumentStore.get(category, document_id, include_deleted=True)
        if document is None:
            return None
        document.deleted_flag = False
        document.deleted_at = None
        db.session.commit()
        return document
    
    @staticmethod
    def list_all(employee_id=None, approval_status=None, include_deleted=False):
        """Documents of every category as ``(category, document)`` pairs."""
        documents = []
        for category in DOCUMENT_MODELS:
            for document in DocumentStore.list(category, employee_id, approval_status, include_deleted):
                documents.append((category, document))
        return documents
