from mediatank.extensions.extension import db
from datetime import datetime

class VerificationCode(db.Model):
    """One pending code per e-mail address, replaced on regeneration."""
    __tablename__ = 'verification_codes'

    email = db.Column(db.String(120), primary_key=True)
    code = db.Column(db.String(6), nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
    attempts = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def is_expired(self, now=None):
        return (now or datetime.utcnow()) > self.expires_at
