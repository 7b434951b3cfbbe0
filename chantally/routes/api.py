# API routes (channel summaries, user status)

import logging
from flask import Blueprint, request, jsonify
from chantally.extensions import db
from chantally.models import Channel, User, UserStatus
from chantally.functions.dates import parse_iso
from chantally.sockets import broadcast_user_status

logger = logging.getLogger(__name__)

api_bp = Blueprint('api', __name__, url_prefix='/api')

MAX_DESCRIPTION_LENGTH = 100


# --- CHANNELS ---

@api_bp.route('/channels/<int:channel_id>', methods=['GET'])
def get_channel(channel_id):
    # Channel summary with its stored counters
    channel = db.session.get(Channel, channel_id)
    if not channel or channel.trashed:
        return jsonify({'error': 'channel not found'}), 404

    return jsonify({
        'id': channel.id,
        'name': channel.name,
        'slug': channel.slug,
        'channel_type': channel.channel_type,
        'status': channel.status,
        'messages_count': channel.messages_count,
        'user_count': channel.user_count,
        'allow_channel_wide_mentions': channel.allow_channel_wide_mentions,
        'relative_url': channel.relative_url
    })


# --- USER STATUS ---

@api_bp.route('/users/<int:user_id>/status', methods=['PUT'])
def set_user_status(user_id):
    # Set (or replace) a user's status and push it to status subscribers
    user = db.session.get(User, user_id)
    if not user:
        return jsonify({'error': 'user not found'}), 404

    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        return jsonify({'error': 'status must be a JSON object'}), 400
    description = data.get('description') or ''
    emoji = data.get('emoji') or ''
    if not isinstance(description, str) or not isinstance(emoji, str):
        return jsonify({'error': 'description and emoji must be strings'}), 400
    description = description.strip()
    emoji = emoji.strip()

    if not description:
        return jsonify({'error': 'description not specified'}), 400
    if len(description) > MAX_DESCRIPTION_LENGTH:
        return jsonify({'error': 'description is too long'}), 400
    if not emoji:
        return jsonify({'error': 'emoji not specified'}), 400

    try:
        ends_at = parse_iso(data.get('ends_at'))
    except (TypeError, ValueError):
        return jsonify({'error': 'invalid ends_at'}), 400

    status = user.status
    if status is None:
        status = UserStatus(user_id=user.id, description=description, emoji=emoji)
        db.session.add(status)
    # Full overwrite, no merge with the previous status
    status.description = description
    status.emoji = emoji
    status.ends_at = ends_at
    db.session.commit()

    payload = status.to_payload()
    broadcast_user_status({user.id: payload})
    logger.info("[USER STATUS] User %s set status %r", user.id, description)
    return jsonify(payload)


@api_bp.route('/users/<int:user_id>/status', methods=['DELETE'])
def clear_user_status(user_id):
    # Clear a user's status; subscribers receive {user_id: null}
    user = db.session.get(User, user_id)
    if not user:
        return jsonify({'error': 'user not found'}), 404

    if user.status is not None:
        db.session.delete(user.status)
        db.session.commit()

    broadcast_user_status({user.id: None})
    logger.info("[USER STATUS] User %s cleared status", user.id)
    return jsonify({'success': True})
