# Chat-related models: channels, memberships

from flask import current_app, has_app_context
from sqlalchemy import true
from sqlalchemy.orm import validates
from chantally.extensions import db
from chantally.functions.dates import utcnow

CHANNEL_STATUSES = ('open', 'archived', 'read_only')
CHANNEL_TYPES = ('category', 'direct_message')

# Statuses whose user_count is always 0
UNCOUNTED_STATUSES = ('archived', 'read_only')


class NotNullViolation(ValueError):
    # Raised when a NOT NULL attribute is assigned None
    def __init__(self, model, column):
        super().__init__(f"null value in column '{column}' of '{model}' violates not-null constraint")
        self.model = model
        self.column = column


class Channel(db.Model):
    # Chat channel with denormalized counters kept by ensure_consistency
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    slug = db.Column(db.String(100), nullable=True)
    channel_type = db.Column(db.String(20), nullable=False, default='category')  # 'category', 'direct_message'
    status = db.Column(db.String(20), nullable=False, default='open')  # 'open', 'archived', 'read_only'
    created_at = db.Column(db.DateTime, default=utcnow)
    deleted_at = db.Column(db.DateTime, nullable=True, index=True)

    # Counters (written only by the reconciliation engine)
    messages_count = db.Column(db.Integer, nullable=False, default=0)
    user_count = db.Column(db.Integer, nullable=False, default=0)

    allow_channel_wide_mentions = db.Column(db.Boolean, nullable=False, default=True,
                                            server_default=true())

    # Relationships
    messages = db.relationship('Message', backref='channel', lazy=True, cascade='all, delete-orphan')
    memberships = db.relationship('ChannelMembership', backref='channel', lazy=True,
                                  cascade='all, delete-orphan')

    @validates('allow_channel_wide_mentions')
    def _validate_allow_channel_wide_mentions(self, key, value):
        if value is None:
            raise NotNullViolation('channel', key)
        return bool(value)

    @validates('status')
    def _validate_status(self, key, value):
        if value not in CHANNEL_STATUSES:
            raise ValueError(f"unknown channel status: {value!r}")
        return value

    @validates('channel_type')
    def _validate_channel_type(self, key, value):
        if value not in CHANNEL_TYPES:
            raise ValueError(f"unknown channel type: {value!r}")
        return value

    @property
    def relative_url(self):
        # /chat/c/<slug>/<id>, with '-' standing in for a missing slug
        prefix = '/chat'
        if has_app_context():
            prefix = current_app.config.get('CHAT_URL_PREFIX', prefix)
        return f"{prefix.rstrip('/')}/c/{self.slug or '-'}/{self.id}"

    @property
    def trashed(self):
        return self.deleted_at is not None

    @property
    def is_open(self):
        return self.status == 'open'

    def trash(self):
        if self.deleted_at is None:
            self.deleted_at = utcnow()

    def recover(self):
        self.deleted_at = None


class ChannelMembership(db.Model):
    # A user's membership of a channel; only followers are counted
    __table_args__ = (db.UniqueConstraint('user_id', 'channel_id'),)

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False)
    channel_id = db.Column(db.Integer, db.ForeignKey('channel.id', ondelete='CASCADE'),
                           nullable=False, index=True)
    following = db.Column(db.Boolean, nullable=False, default=True)
