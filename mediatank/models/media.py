from mediatank.extensions.extension import db
from sqlalchemy.dialects.postgresql import UUID
import enum
import uuid
from datetime import datetime

class MediaType(enum.Enum):
    VIDEO = "VIDEO"
    IMAGE = "IMAGE"
    MUSIC = "MUSIC"

class Media(db.Model):
    __tablename__ = 'media'

    id = db.Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = db.Column(UUID(as_uuid=True), db.ForeignKey('users.id'), nullable=False, index=True)
    title = db.Column(db.String, nullable=False)
    description = db.Column(db.Text, default='')
    type = db.Column(db.Enum(MediaType), nullable=False)
    url = db.Column(db.String, nullable=False)
    thumbnail_url = db.Column(db.String, nullable=True)
    ai_tool = db.Column(db.String, nullable=True)
    ai_prompt = db.Column(db.Text, nullable=True)
    price = db.Column(db.Numeric(10, 2), nullable=True)
    is_public = db.Column(db.Boolean, nullable=False, default=True)
    is_approved = db.Column(db.Boolean, nullable=False, default=True)
    views = db.Column(db.Integer, nullable=False, default=0)

    # Set once, by the sale of the item
    is_sold = db.Column(db.Boolean, nullable=False, default=False, index=True)
    sold_at = db.Column(db.DateTime, nullable=True)
    delete_after = db.Column(db.DateTime, nullable=True, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = db.relationship('User', backref=db.backref('media', lazy=True))
    ratings = db.relationship('Rating', backref='media', lazy=True, cascade='all, delete-orphan')
    comments = db.relationship('Comment', backref='media', lazy=True, cascade='all, delete-orphan')
    saves = db.relationship('SavedMedia', backref='media', lazy=True, cascade='all, delete-orphan')

    @property
    def is_paid(self):
        return self.price is not None and float(self.price) > 0

    def average_rating(self):
        if not self.ratings:
            return 0
        return round(sum(r.score for r in self.ratings) / len(self.ratings), 1)

    def increment_views(self):
        self.views = (self.views or 0) + 1
        db.session.commit()
        return self.views

    def to_dict(self, now=None):
        from mediatank.services.lifecycle import days_left

        days_remaining = None
        if self.is_sold and self.delete_after:
            days_remaining = days_left(self.delete_after, now)

        return {
            'id': str(self.id),
            'title': self.title,
            'description': self.description,
            'type': self.type.name if self.type else None,
            'url': self.url,
            'thumbnail_url': self.thumbnail_url,
            'ai_tool': self.ai_tool,
            'ai_prompt': self.ai_prompt,
            'price': float(self.price) if self.price is not None else None,
            'is_public': self.is_public,
            'views': self.views,
            'is_sold': self.is_sold,
            'sold_at': self.sold_at.isoformat() if self.sold_at else None,
            'delete_after': self.delete_after.isoformat() if self.delete_after else None,
            'days_remaining': days_remaining,
            'avg_rating': self.average_rating(),
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'owner': {
                'id': str(self.owner.id),
                'username': self.owner.username,
                'name': self.owner.name
            } if self.owner else None
        }

    def __repr__(self):
        return f'<Media {self.title}>'
