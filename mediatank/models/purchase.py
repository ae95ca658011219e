from mediatank.extensions.extension import db
from sqlalchemy.dialects.postgresql import UUID
import uuid
from datetime import datetime
import enum

class PurchaseStatus(enum.Enum):
    pending = 'pending'
    completed = 'completed'
    failed = 'failed'

class Purchase(db.Model):
    __tablename__ = 'purchases'

    id = db.Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    buyer_id = db.Column(UUID(as_uuid=True), db.ForeignKey('users.id'), nullable=False, index=True)
    seller_id = db.Column(UUID(as_uuid=True), db.ForeignKey('users.id'), nullable=False)
    # Nulled when the sold media is purged so the ledger keeps its history
    media_id = db.Column(UUID(as_uuid=True), db.ForeignKey('media.id', ondelete='SET NULL'), nullable=True, index=True)
    media_title = db.Column(db.String, nullable=True)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    currency = db.Column(db.String(3), nullable=False, default='usd')
    status = db.Column(db.Enum(PurchaseStatus), nullable=False, default=PurchaseStatus.pending)
    stripe_session_id = db.Column(db.String(255), nullable=True, index=True)
    external_payment_ref = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    completed_at = db.Column(db.DateTime, nullable=True)

    buyer = db.relationship('User', foreign_keys=[buyer_id], backref=db.backref('purchases', lazy=True))
    seller = db.relationship('User', foreign_keys=[seller_id], backref=db.backref('sales', lazy=True))
    media = db.relationship('Media', backref=db.backref('purchases', lazy=True))

    def to_dict(self, now=None):
        return {
            'id': str(self.id),
            'buyer_id': str(self.buyer_id),
            'seller_id': str(self.seller_id),
            'media_id': str(self.media_id) if self.media_id else None,
            'media_title': self.media_title,
            'amount': float(self.amount),
            'currency': self.currency,
            'status': self.status.name,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
            'media': self.media.to_dict(now) if self.media else None
        }
