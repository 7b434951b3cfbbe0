# Aggregate queries behind the channel counters
#
# Every rule about what counts lives here: trashed messages are excluded,
# memberships count only when following and owned by an active, non-staged,
# non-suspended user, and archived/read_only channels count no users.
# The *_totals functions compute all channels in one GROUP BY each.

from sqlalchemy import func, or_
from chantally.extensions import db
from chantally.models import Channel, ChannelMembership, Message, User, UNCOUNTED_STATUSES
from chantally.functions.dates import utcnow


def eligible_membership_filter(now=None):
    # WHERE clauses for a membership that counts towards user_count
    now = now or utcnow()
    return (
        ChannelMembership.following.is_(True),
        User.active.is_(True),
        User.staged.is_(False),
        or_(User.suspended_till.is_(None), User.suspended_till <= now),
    )


def active_message_totals(channel_ids=None):
    # {channel_id: non-trashed message count}; channels without messages are absent
    query = db.session.query(Message.channel_id, func.count(Message.id)).filter(
        Message.deleted_at.is_(None)
    )
    if channel_ids is not None:
        if not channel_ids:
            return {}
        query = query.filter(Message.channel_id.in_(channel_ids))
    return dict(query.group_by(Message.channel_id).all())


def active_membership_totals(channel_ids=None, now=None):
    # {channel_id: eligible following memberships} for open channels only
    query = db.session.query(
        ChannelMembership.channel_id, func.count(ChannelMembership.id)
    ).join(
        User, User.id == ChannelMembership.user_id
    ).join(
        Channel, Channel.id == ChannelMembership.channel_id
    ).filter(
        Channel.status == 'open',
        *eligible_membership_filter(now)
    )
    if channel_ids is not None:
        if not channel_ids:
            return {}
        query = query.filter(ChannelMembership.channel_id.in_(channel_ids))
    return dict(query.group_by(ChannelMembership.channel_id).all())


def count_active_messages(channel_id):
    return active_message_totals([channel_id]).get(channel_id, 0)


def count_active_memberships(channel_id, now=None):
    # Short-circuits to 0 for archived/read_only (and missing) channels
    status = db.session.query(Channel.status).filter(Channel.id == channel_id).scalar()
    if status is None or status in UNCOUNTED_STATUSES:
        return 0
    return active_membership_totals([channel_id], now=now).get(channel_id, 0)
