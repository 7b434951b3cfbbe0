# Configuration file for ChanTally application

import json
import os

# Try to load configuration from `config.json` located next to this file.
# If the file is missing or a key is absent, fall back to the defaults below.
_BASE_DIR = os.path.dirname(os.path.abspath(__file__))
_JSON_PATH = os.path.join(_BASE_DIR, 'config.json')

# Defaults
_defaults = {
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///chantally.db',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'SECRET_KEY': 'change_me',
    'SOCKETIO_ASYNC_MODE': 'eventlet',
    # Socket.IO topics (event name and room name are the same)
    'MEMBERSHIPS_TOPIC': 'chat_channel_edits',
    'USER_STATUS_TOPIC': 'user_status',
    # Channel links are /<prefix>/c/<slug or ->/<id>
    'CHAT_URL_PREFIX': '/chat',
    'EMOJI_URL_TEMPLATE': '/images/emoji/twitter/{name}.png?v=12',
    # Seconds between mouseenter and tooltip reveal
    'TOOLTIP_DELAY': 0.0,
    'LOG_LEVEL': 'INFO',
}

_cfg = {}
try:
    with open(_JSON_PATH, 'r', encoding='utf-8') as f:
        _cfg = json.load(f) or {}
except FileNotFoundError:
    # No config.json present, use defaults
    _cfg = {}
except ValueError:
    # Unparseable config.json, fall back to defaults
    _cfg = {}


# Helper to get value from JSON or defaults
def _get(key):
    return _cfg.get(key, _defaults.get(key))


# Database
SQLALCHEMY_DATABASE_URI = _get('SQLALCHEMY_DATABASE_URI')
SQLALCHEMY_TRACK_MODIFICATIONS = _get('SQLALCHEMY_TRACK_MODIFICATIONS')

# Security
SECRET_KEY = _get('SECRET_KEY')

# Realtime transport
SOCKETIO_ASYNC_MODE = _get('SOCKETIO_ASYNC_MODE')
MEMBERSHIPS_TOPIC = _get('MEMBERSHIPS_TOPIC')
USER_STATUS_TOPIC = _get('USER_STATUS_TOPIC')

# Presentation
CHAT_URL_PREFIX = _get('CHAT_URL_PREFIX')
EMOJI_URL_TEMPLATE = _get('EMOJI_URL_TEMPLATE')
TOOLTIP_DELAY = float(_get('TOOLTIP_DELAY') or 0)

LOG_LEVEL = str(_get('LOG_LEVEL') or 'INFO').upper()


def as_dict():
    # Flat mapping of every setting, used to seed flask_app.config
    return {
        'SQLALCHEMY_DATABASE_URI': SQLALCHEMY_DATABASE_URI,
        'SQLALCHEMY_TRACK_MODIFICATIONS': SQLALCHEMY_TRACK_MODIFICATIONS,
        'SECRET_KEY': SECRET_KEY,
        'SOCKETIO_ASYNC_MODE': SOCKETIO_ASYNC_MODE,
        'MEMBERSHIPS_TOPIC': MEMBERSHIPS_TOPIC,
        'USER_STATUS_TOPIC': USER_STATUS_TOPIC,
        'CHAT_URL_PREFIX': CHAT_URL_PREFIX,
        'EMOJI_URL_TEMPLATE': EMOJI_URL_TEMPLATE,
        'TOOLTIP_DELAY': TOOLTIP_DELAY,
        'LOG_LEVEL': LOG_LEVEL,
    }
