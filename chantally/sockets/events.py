# Socket.IO event handlers: topic subscription and broadcast helpers

import logging
from flask import current_app, request
from flask_socketio import join_room, leave_room, emit
from chantally.extensions import socketio

logger = logging.getLogger(__name__)


def known_topics():
    # Topics a client may subscribe to
    return {
        current_app.config.get('MEMBERSHIPS_TOPIC', 'chat_channel_edits'),
        current_app.config.get('USER_STATUS_TOPIC', 'user_status'),
    }


def _topic_from(data):
    if not isinstance(data, dict):
        return None
    topic = data.get('topic')
    if topic in known_topics():
        return topic
    return None


@socketio.on('subscribe')
def on_subscribe(data):
    # Join the room of a broadcast topic
    topic = _topic_from(data)
    if not topic:
        emit('error', {'message': 'unknown topic'})
        return
    join_room(topic)
    logger.info("[SOCKET SUBSCRIBE] %s joined %s", request.sid, topic)
    emit('subscribed', {'topic': topic})


@socketio.on('unsubscribe')
def on_unsubscribe(data):
    topic = _topic_from(data)
    if not topic:
        emit('error', {'message': 'unknown topic'})
        return
    leave_room(topic)
    logger.info("[SOCKET UNSUBSCRIBE] %s left %s", request.sid, topic)


def broadcast_user_status(patch):
    # Push a presence patch {user_id: status dict or None} to status subscribers
    topic = current_app.config.get('USER_STATUS_TOPIC', 'user_status')
    body = {str(user_id): value for user_id, value in patch.items()}
    socketio.emit(topic, body, to=topic)
    logger.debug("[USER STATUS] %s -> %s", topic, body)
    return body
