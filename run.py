# Entry point for the ChanTally application

import logging

from config import LOG_LEVEL
from chantally import create_app
from chantally.extensions import socketio

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format='%(asctime)s %(levelname)s %(name)s %(message)s'
)

app = create_app()

if __name__ == '__main__':
    logging.getLogger(__name__).info("[SERVER STARTUP] Starting ChanTally on port 5000")
    socketio.run(app, allow_unsafe_werkzeug=True, debug=False)
