import pytest

from chantally import create_app
from chantally.extensions import db
from chantally.functions.publisher import RecordingPublisher
from chantally.models import Channel, ChannelMembership, Message, User


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def app(publisher):
    """Fresh app over an in-memory SQLite database per test."""
    flask_app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'SOCKETIO_ASYNC_MODE': 'threading',
        'CHANGE_PUBLISHER': publisher,
    })
    with flask_app.app_context():
        yield flask_app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def make_user(app):
    counter = {'n': 0}

    def _make(**fields):
        counter['n'] += 1
        fields.setdefault('username', f"user{counter['n']}")
        user = User(**fields)
        db.session.add(user)
        db.session.commit()
        return user

    return _make


@pytest.fixture
def make_channel(app):
    counter = {'n': 0}

    def _make(**fields):
        counter['n'] += 1
        fields.setdefault('name', f"channel {counter['n']}")
        channel = Channel(**fields)
        db.session.add(channel)
        db.session.commit()
        return channel

    return _make


@pytest.fixture
def make_message(app):
    def _make(channel, **fields):
        message = Message(channel_id=channel.id, content=fields.pop('content', 'hello'), **fields)
        db.session.add(message)
        db.session.commit()
        return message

    return _make


@pytest.fixture
def follow(app):
    def _follow(user, channel, following=True):
        membership = ChannelMembership(user_id=user.id, channel_id=channel.id, following=following)
        db.session.add(membership)
        db.session.commit()
        return membership

    return _follow
