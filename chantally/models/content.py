# Content-related models: messages

from chantally.extensions import db
from chantally.functions.dates import utcnow


class Message(db.Model):
    # Chat message; trashed messages stay in the table with deleted_at set
    id = db.Column(db.Integer, primary_key=True)
    content = db.Column(db.Text, nullable=False, default='')
    timestamp = db.Column(db.DateTime, default=utcnow)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    channel_id = db.Column(db.Integer, db.ForeignKey('channel.id'), nullable=False, index=True)
    deleted_at = db.Column(db.DateTime, nullable=True)

    # Relationships
    user = db.relationship('User', backref='messages')

    @property
    def trashed(self):
        return self.deleted_at is not None

    def trash(self):
        if self.deleted_at is None:
            self.deleted_at = utcnow()

    def recover(self):
        self.deleted_at = None
