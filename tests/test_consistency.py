from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from chantally.extensions import db
from chantally.functions import consistency
from chantally.functions.consistency import ensure_consistency
from chantally.functions.dates import utcnow
from chantally.models import Channel


def reload(channel):
    return db.session.get(Channel, channel.id)


class FailingPublisher:

    def __init__(self):
        self.calls = 0

    def publish(self, channel_id, memberships_count):
        self.calls += 1
        raise ConnectionError('transport down')


@pytest.fixture
def message_channels(make_channel, make_message):
    channels = {
        'category1': make_channel(),
        'category2': make_channel(),
        'category3': make_channel(),
        'category4': make_channel(),
        'dm1': make_channel(channel_type='direct_message'),
        'dm2': make_channel(channel_type='direct_message'),
    }
    for name, count in (('category1', 3), ('category2', 4), ('category3', 1), ('dm2', 2)):
        for _ in range(count):
            make_message(channels[name])
    return channels


def test_counts_messages_for_every_channel(message_channels):
    ensure_consistency()

    expected = {'category1': 3, 'category2': 4, 'category3': 1,
                'category4': 0, 'dm1': 0, 'dm2': 2}
    for name, count in expected.items():
        assert reload(message_channels[name]).messages_count == count


def test_does_not_count_deleted_messages(make_channel, make_message):
    channel = make_channel()
    for _ in range(3):
        make_message(channel)
    make_message(channel).trash()
    db.session.commit()

    ensure_consistency()

    assert reload(channel).messages_count == 3


def test_does_not_update_deleted_channels(make_channel, make_message, publisher):
    channel = make_channel()
    message = make_message(channel)
    ensure_consistency()

    message.trash()
    channel.trash()
    db.session.commit()
    publisher.clear()
    deltas = ensure_consistency()

    assert reload(channel).messages_count == 1
    assert deltas == []
    assert publisher.messages == []


@pytest.fixture
def membership_channels(make_channel, make_user, follow):
    category1 = make_channel()
    category2 = make_channel()
    user_1, user_2, user_3 = make_user(), make_user(), make_user()
    follow(user_1, category1)
    follow(user_1, category2)
    follow(user_2, category1)
    follow(user_2, category2)
    follow(user_3, category1, following=False)
    follow(user_3, category2)
    return category1, category2


def test_sets_user_count_for_each_channel(membership_channels):
    category1, category2 = membership_channels

    ensure_consistency()

    assert reload(category1).user_count == 2
    assert reload(category2).user_count == 3


def test_does_not_count_suspended_staged_or_inactive_users(make_channel, make_user, follow):
    category1 = make_channel()
    category2 = make_channel()
    follow(make_user(), category1)
    follow(make_user(suspended_till=utcnow() + timedelta(weeks=3)), category2)
    follow(make_user(staged=True), category2)
    follow(make_user(active=False), category2)

    ensure_consistency()

    assert reload(category1).user_count == 1
    assert reload(category2).user_count == 0


@pytest.mark.parametrize('flag, value', [
    ('active', False),
    ('staged', True),
    ('suspended_till', 'future'),
])
def test_toggling_a_user_flag_drops_the_membership(make_channel, make_user, follow, flag, value):
    channel = make_channel()
    user = make_user()
    follow(user, channel)
    follow(make_user(), channel)
    ensure_consistency()
    assert reload(channel).user_count == 2

    if value == 'future':
        value = utcnow() + timedelta(days=1)
    setattr(user, flag, value)
    db.session.commit()
    ensure_consistency()

    assert reload(channel).user_count == 1


def test_does_not_count_archived_or_read_only_channels(membership_channels):
    category1, _ = membership_channels

    category1.status = 'archived'
    db.session.commit()
    ensure_consistency()
    assert reload(category1).user_count == 0

    reload(category1).status = 'read_only'
    db.session.commit()
    ensure_consistency()
    assert reload(category1).user_count == 0


def test_reopening_restores_count_from_current_memberships(membership_channels, make_user, follow):
    category1, _ = membership_channels
    ensure_consistency()
    assert reload(category1).user_count == 2

    category1.status = 'archived'
    db.session.commit()
    ensure_consistency()
    assert reload(category1).user_count == 0

    # Membership added while archived
    follow(make_user(), reload(category1))
    reload(category1).status = 'open'
    db.session.commit()
    ensure_consistency()
    assert reload(category1).user_count == 3


def test_publishes_all_the_updated_channels(membership_channels, make_channel, make_user, follow,
                                            publisher):
    category1, category2 = membership_channels
    dm = make_channel(channel_type='direct_message')
    follow(make_user(), dm)
    follow(make_user(), dm)

    ensure_consistency()

    assert len(publisher.messages) == 3
    assert sorted(publisher.messages, key=lambda m: m['channel_id']) == sorted([
        {'channel_id': category1.id, 'memberships_count': 2},
        {'channel_id': category2.id, 'memberships_count': 3},
        {'channel_id': dm.id, 'memberships_count': 2},
    ], key=lambda m: m['channel_id'])

    publisher.clear()
    deltas = ensure_consistency()
    assert deltas == []
    assert publisher.messages == []


def test_message_count_changes_are_persisted_silently(make_channel, make_message, publisher):
    channel = make_channel()
    make_message(channel)

    deltas = ensure_consistency()

    assert [d.channel_id for d in deltas] == [channel.id]
    assert deltas[0].messages_changed
    assert not deltas[0].memberships_changed
    assert publisher.messages == []
    assert reload(channel).messages_count == 1


def test_publishes_only_channels_whose_membership_count_changed(make_channel, make_user, follow,
                                                                publisher):
    channels = [make_channel() for _ in range(5)]
    user = make_user()
    follow(user, channels[1])
    follow(user, channels[3])

    ensure_consistency()

    assert publisher.messages == [
        {'channel_id': channels[1].id, 'memberships_count': 1},
        {'channel_id': channels[3].id, 'memberships_count': 1},
    ]


def test_second_run_updates_nothing(membership_channels, make_message):
    category1, _ = membership_channels
    make_message(category1)

    first = ensure_consistency()
    second = ensure_consistency()

    assert len(first) == 2
    assert second == []


def test_returns_deltas_with_previous_values(membership_channels):
    category1, _ = membership_channels

    deltas = {d.channel_id: d for d in ensure_consistency()}

    delta = deltas[category1.id]
    assert delta.previous_user_count == 0
    assert delta.user_count == 2
    assert delta.previous_messages_count == 0
    assert delta.messages_count == 0


def test_failed_write_is_isolated(membership_channels, monkeypatch, publisher):
    category1, category2 = membership_channels
    original = consistency._apply_counts

    def flaky(channel_id, *args):
        if channel_id == category1.id:
            raise OperationalError('UPDATE channel', {}, Exception('database is locked'))
        return original(channel_id, *args)

    monkeypatch.setattr(consistency, '_apply_counts', flaky)

    deltas = ensure_consistency()

    assert [d.channel_id for d in deltas] == [category2.id]
    assert publisher.messages == [{'channel_id': category2.id, 'memberships_count': 3}]
    assert reload(category1).user_count == 0
    assert reload(category2).user_count == 3


def test_concurrent_change_is_not_double_applied(membership_channels, monkeypatch, publisher):
    category1, category2 = membership_channels
    original = consistency._apply_counts

    def racing(channel_id, *args):
        if channel_id == category1.id:
            # Another run wrote this row between our read and our write
            Channel.query.filter_by(id=channel_id).update({'user_count': 2})
            db.session.commit()
        return original(channel_id, *args)

    monkeypatch.setattr(consistency, '_apply_counts', racing)

    deltas = ensure_consistency()

    assert [d.channel_id for d in deltas] == [category2.id]
    assert [m['channel_id'] for m in publisher.messages] == [category2.id]
    assert reload(category1).user_count == 2


def test_publish_failure_keeps_the_persisted_update(membership_channels):
    category1, category2 = membership_channels
    failing = FailingPublisher()

    deltas = ensure_consistency(publisher=failing)

    assert failing.calls == 2
    assert {d.channel_id for d in deltas} == {category1.id, category2.id}
    assert reload(category1).user_count == 2
    assert reload(category2).user_count == 3
