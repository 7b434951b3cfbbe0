# Reconciliation of the denormalized channel counters
#
# ensure_consistency() recomputes messages_count and user_count for every
# non-trashed channel from the source tables, writes only the rows that
# differ and publishes the new memberships count of each channel whose
# user_count moved. Safe to run repeatedly and concurrently: every write is
# a conditional UPDATE against the values that were read.

import logging
from dataclasses import dataclass
from sqlalchemy.exc import SQLAlchemyError
from chantally.extensions import db
from chantally.models import Channel, UNCOUNTED_STATUSES
from chantally.functions.counts import active_message_totals, active_membership_totals
from chantally.functions.dates import utcnow
from chantally.functions.publisher import get_publisher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChannelDelta:
    channel_id: int
    messages_count: int
    user_count: int
    previous_messages_count: int
    previous_user_count: int

    @property
    def memberships_changed(self):
        return self.user_count != self.previous_user_count

    @property
    def messages_changed(self):
        return self.messages_count != self.previous_messages_count


def _load_channels():
    return db.session.query(
        Channel.id, Channel.messages_count, Channel.user_count, Channel.status
    ).filter(Channel.deleted_at.is_(None)).order_by(Channel.id).all()


def _apply_counts(channel_id, old_messages, old_users, new_messages, new_users):
    # Conditional single-row update; returns False if the row moved under us
    updated = Channel.query.filter(
        Channel.id == channel_id,
        Channel.deleted_at.is_(None),
        Channel.messages_count == old_messages,
        Channel.user_count == old_users,
    ).update(
        {'messages_count': new_messages, 'user_count': new_users},
        synchronize_session=False
    )
    db.session.commit()
    return updated == 1


def ensure_consistency(publisher=None, now=None):
    # Reconcile every channel; returns the list of ChannelDelta actually written
    if publisher is None:
        publisher = get_publisher()
    now = now or utcnow()

    channels = _load_channels()
    # One grouped query per counter across all channels
    message_totals = active_message_totals()
    membership_totals = active_membership_totals(now=now)
    # End the read transaction; each row is written in its own
    db.session.commit()

    deltas = []
    failed = 0
    for row in channels:
        new_messages = message_totals.get(row.id, 0)
        if row.status in UNCOUNTED_STATUSES:
            new_users = 0
        else:
            new_users = membership_totals.get(row.id, 0)

        if new_messages == row.messages_count and new_users == row.user_count:
            continue

        try:
            applied = _apply_counts(row.id, row.messages_count, row.user_count,
                                    new_messages, new_users)
        except SQLAlchemyError:
            db.session.rollback()
            failed += 1
            logger.exception("[CONSISTENCY] Failed to update counters for channel %s", row.id)
            continue

        if not applied:
            logger.info("[CONSISTENCY] Channel %s changed concurrently, skipped", row.id)
            continue

        delta = ChannelDelta(
            channel_id=row.id,
            messages_count=new_messages,
            user_count=new_users,
            previous_messages_count=row.messages_count,
            previous_user_count=row.user_count,
        )
        deltas.append(delta)

        if delta.memberships_changed:
            _publish(publisher, delta)

    logger.info("[CONSISTENCY] %d channel(s) checked, %d updated, %d failed",
                len(channels), len(deltas), failed)
    return deltas


def _publish(publisher, delta):
    # Delivery loss is reported, never rolled back
    try:
        publisher.publish(delta.channel_id, delta.user_count)
    except Exception:
        logger.exception("[PUBLISH] Delivery lost for channel %s (memberships_count=%s)",
                         delta.channel_id, delta.user_count)
