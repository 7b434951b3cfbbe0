# User-related models

from chantally.extensions import db
from chantally.functions.dates import utcnow, to_iso


class User(db.Model):
    # User with the activity flags that decide whether memberships are counted
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(150), unique=True, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    # Eligibility
    active = db.Column(db.Boolean, nullable=False, default=True)
    staged = db.Column(db.Boolean, nullable=False, default=False)
    suspended_till = db.Column(db.DateTime, nullable=True)  # future value means suspended

    # Relationships
    memberships = db.relationship('ChannelMembership', backref='user', lazy=True,
                                  cascade='all, delete-orphan')
    status = db.relationship('UserStatus', backref='user', uselist=False,
                             cascade='all, delete-orphan')

    @property
    def suspended(self):
        return self.suspended_till is not None and self.suspended_till > utcnow()

    @property
    def eligible_for_counts(self):
        # Python mirror of counts.eligible_membership_filter (user part)
        return bool(self.active) and not self.staged and not self.suspended


class UserStatus(db.Model):
    # Custom status shown next to mentions of the user
    user_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), primary_key=True)
    description = db.Column(db.String(100), nullable=False)
    emoji = db.Column(db.String(100), nullable=False)
    ends_at = db.Column(db.DateTime, nullable=True)
    set_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    def to_payload(self):
        # Body of one entry in a presence patch
        return {
            'description': self.description,
            'emoji': self.emoji,
            'ends_at': to_iso(self.ends_at),
        }
