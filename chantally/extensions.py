# Flask extensions initialization
# Helps avoid circular imports by initializing extensions without app context
# async_mode is chosen per app in create_app (SOCKETIO_ASYNC_MODE)

from flask_sqlalchemy import SQLAlchemy
from flask_socketio import SocketIO

db = SQLAlchemy()
socketio = SocketIO(
    cors_allowed_origins='*',
    ping_timeout=60,
    ping_interval=25,
    path='socket.io',
    engineio_logger=False,
    logger=False
)
