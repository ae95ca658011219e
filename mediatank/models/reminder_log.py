from mediatank.extensions.extension import db
from sqlalchemy.dialects.postgresql import UUID
import uuid
from datetime import datetime

class ReminderLog(db.Model):
    """Marks that a buyer was reminded at a threshold on a given day."""
    __tablename__ = 'reminder_logs'

    id = db.Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    buyer_id = db.Column(UUID(as_uuid=True), db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    threshold = db.Column(db.Integer, nullable=False)
    run_date = db.Column(db.Date, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint('buyer_id', 'threshold', 'run_date', name='uq_reminder_buyer_threshold_day'),
    )
