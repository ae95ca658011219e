from mediatank.extensions.extension import db
from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash
import enum
import uuid
from sqlalchemy.dialects.postgresql import UUID

class UserRole(enum.Enum):
    VIEWER = "VIEWER"
    SUBSCRIBER = "SUBSCRIBER"
    ADMIN = "ADMIN"

class MembershipType(enum.Enum):
    VIEWER = "VIEWER"
    BASIC = "BASIC"
    ADVANCED = "ADVANCED"
    PREMIUM = "PREMIUM"

class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    username = db.Column(db.String(100), unique=True, nullable=False)
    name = db.Column(db.String(120), nullable=True)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    role = db.Column(db.Enum(UserRole), nullable=False, default=UserRole.VIEWER)
    membership_type = db.Column(db.Enum(MembershipType), nullable=False, default=MembershipType.VIEWER)
    free_uploads_used = db.Column(db.Integer, nullable=False, default=0)
    paid_upload_credits = db.Column(db.Integer, nullable=False, default=0)
    stripe_customer_id = db.Column(db.String(255), nullable=True, unique=True)
    stripe_subscription_id = db.Column(db.String(255), nullable=True, unique=True)
    email_verified = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def password(self):
        raise AttributeError('password is not a readable attribute')

    @password.setter
    def password(self, password):
        self.password_hash = generate_password_hash(password)

    def verify_password(self, password):
        return check_password_hash(self.password_hash, password)

    @property
    def display_name(self):
        return self.name or self.username or 'Valued Customer'

    @property
    def is_admin(self):
        return self.role == UserRole.ADMIN

    def to_dict(self):
        return {
            'id': str(self.id),
            'username': self.username,
            'name': self.name,
            'email': self.email,
            'role': self.role.name if self.role else None,
            'membership_type': self.membership_type.name if self.membership_type else None,
            'email_verified': self.email_verified
        }

    def to_summary(self):
        return {
            'id': str(self.id),
            'username': self.username,
            'name': self.name
        }

    def __repr__(self):
        return f'<User {self.username}>'
