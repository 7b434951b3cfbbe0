# Change publisher: pushes membership count changes to live clients

import logging
from flask import current_app
from chantally.extensions import socketio

logger = logging.getLogger(__name__)

DEFAULT_MEMBERSHIPS_TOPIC = 'chat_channel_edits'


def membership_payload(channel_id, memberships_count):
    # Wire body of a membership change notification
    return {'channel_id': int(channel_id), 'memberships_count': int(memberships_count)}


class ChangePublisher:
    # Interface handed to ensure_consistency

    def publish(self, channel_id, memberships_count):
        raise NotImplementedError


class SocketIOChangePublisher(ChangePublisher):
    # Emits to every client subscribed to the memberships topic room

    def __init__(self, topic=None):
        self._topic = topic

    @property
    def topic(self):
        if self._topic:
            return self._topic
        return current_app.config.get('MEMBERSHIPS_TOPIC', DEFAULT_MEMBERSHIPS_TOPIC)

    def publish(self, channel_id, memberships_count):
        payload = membership_payload(channel_id, memberships_count)
        topic = self.topic
        socketio.emit(topic, payload, to=topic)
        logger.debug("[PUBLISH] %s -> %s", topic, payload)


class RecordingPublisher(ChangePublisher):
    # Keeps payloads in memory instead of sending them

    def __init__(self):
        self.messages = []

    def publish(self, channel_id, memberships_count):
        self.messages.append(membership_payload(channel_id, memberships_count))

    def clear(self):
        self.messages = []


def get_publisher():
    # Publisher configured on the current app (CHANGE_PUBLISHER), SocketIO by default
    publisher = current_app.config.get('CHANGE_PUBLISHER')
    if publisher is None:
        publisher = SocketIOChangePublisher()
    return publisher
