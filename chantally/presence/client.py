# Socket.IO client feeding user status patches into a PresenceOverlay

import logging
import socketio

logger = logging.getLogger(__name__)

DEFAULT_TOPIC = 'user_status'


class PresenceClient:

    def __init__(self, overlay, topic=None, sio=None):
        self.overlay = overlay
        self.topic = topic or DEFAULT_TOPIC
        self.sio = sio or socketio.Client(reconnection=True)
        self.sio.on('connect', self._on_connect)
        self.sio.on(self.topic, self.on_patch)

    def connect(self, url, **kwargs):
        self.sio.connect(url, **kwargs)

    def disconnect(self):
        self.sio.disconnect()

    def _on_connect(self):
        # Rooms are per connection; subscribe again after every reconnect
        self.sio.emit('subscribe', {'topic': self.topic})
        logger.info("[PRESENCE CLIENT] Subscribed to %s", self.topic)

    def on_patch(self, patch):
        try:
            self.overlay.apply_patch(patch)
        except ValueError:
            logger.warning("[PRESENCE CLIENT] Ignored malformed patch: %r", patch)
