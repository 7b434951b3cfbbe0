# Socket handlers package; importing it registers the handlers

from chantally.sockets.events import broadcast_user_status, known_topics

__all__ = ['broadcast_user_status', 'known_topics']
