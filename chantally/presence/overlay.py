# Presence overlay: user statuses on the mentions of a rendered post
#
# The overlay keeps {user_id: PresenceRecord} for the life of the view and
# applies patches from the user status topic. A patch maps user ids to a
# status dict (replace) or None (remove). Every mention of a patched user
# is updated; users without a rendered mention only update the map.

import logging
from dataclasses import dataclass
from datetime import datetime
from html.parser import HTMLParser
from markupsafe import Markup
from chantally.functions.dates import parse_iso
from chantally.presence.tooltip import StatusTooltip

logger = logging.getLogger(__name__)

DEFAULT_EMOJI_URL_TEMPLATE = '/images/emoji/twitter/{name}.png?v=12'
DEFAULT_TOOLTIP_DELAY = 0.0


@dataclass(frozen=True)
class PresenceRecord:
    description: str
    emoji: str
    ends_at: datetime = None

    @classmethod
    def from_payload(cls, payload):
        if not isinstance(payload, dict):
            raise ValueError(f"status payload must be a mapping, got {type(payload).__name__}")
        description = payload.get('description')
        emoji = payload.get('emoji')
        # Both fields are required
        if not description or not isinstance(description, str):
            raise ValueError(f"status description must be a non-empty string, got {description!r}")
        if not emoji or not isinstance(emoji, str):
            raise ValueError(f"status emoji must be a non-empty string, got {emoji!r}")
        return cls(
            description=description,
            emoji=emoji,
            ends_at=parse_iso(payload.get('ends_at')),
        )


def normalize_user_id(key):
    # Patch keys arrive as strings over JSON
    try:
        return int(key)
    except (TypeError, ValueError):
        return key


class StatusBadge:
    # The status span attached to one mention; owns its hover tooltip

    def __init__(self, overlay, user_id):
        self.user_id = user_id
        self._overlay = overlay
        self.tooltip = StatusTooltip(
            lambda: overlay.status_of(user_id),
            overlay.emoji_url,
            scheduler=overlay.scheduler,
            delay=overlay.tooltip_delay,
        )

    @property
    def record(self):
        return self._overlay.status_of(self.user_id)

    def mouseenter(self):
        self.tooltip.mouseenter()

    def mouseleave(self):
        self.tooltip.mouseleave()

    def render(self):
        record = self.record
        return Markup(
            '<span class="user-status-message"><img class="emoji" src="{src}" alt="{emoji}"></span>'
        ).format(src=self._overlay.emoji_url(record), emoji=record.emoji)


class Mention:
    # One rendered @mention in the post

    def __init__(self, user_id, username):
        self.user_id = user_id
        self.username = username
        self.badge = None

    def render(self):
        html = Markup('<a class="mention" href="/u/{name}">@{name}').format(name=self.username)
        if self.badge is not None:
            html += self.badge.render()
        return html + Markup('</a>')


class _MentionParser(HTMLParser):
    # Collects usernames of <a class="mention"> anchors in document order

    def __init__(self):
        super().__init__()
        self.usernames = []
        self._current = None

    def handle_starttag(self, tag, attrs):
        if tag != 'a':
            return
        attrs = dict(attrs)
        if 'mention' not in (attrs.get('class') or '').split():
            return
        href = attrs.get('href') or ''
        self._current = {'href': href, 'text': ''}

    def handle_data(self, data):
        if self._current is not None:
            self._current['text'] += data

    def handle_endtag(self, tag):
        if tag != 'a' or self._current is None:
            return
        username = self._current['text'].strip().lstrip('@')
        href = self._current['href']
        if not username and href.startswith('/u/'):
            username = href[len('/u/'):].strip('/')
        if username:
            self.usernames.append(username)
        self._current = None


def parse_mentions(cooked):
    parser = _MentionParser()
    parser.feed(cooked or '')
    parser.close()
    return parser.usernames


class PresenceOverlay:

    def __init__(self, emoji_url_template=None, scheduler=None, tooltip_delay=None):
        self.statuses = {}
        self.mentions = []
        self.emoji_url_template = emoji_url_template or DEFAULT_EMOJI_URL_TEMPLATE
        self.scheduler = scheduler
        self.tooltip_delay = DEFAULT_TOOLTIP_DELAY if tooltip_delay is None else tooltip_delay

    @classmethod
    def from_post(cls, cooked, mentioned_users, **kwargs):
        # Build the view from a rendered post and its mentioned_users list
        overlay = cls(**kwargs)
        ids_by_username = {}
        for user in mentioned_users or []:
            user_id = normalize_user_id(user['id'])
            ids_by_username[user['username'].lower()] = user_id
            if user.get('status'):
                overlay.statuses[user_id] = PresenceRecord.from_payload(user['status'])

        for username in parse_mentions(cooked):
            user_id = ids_by_username.get(username.lower())
            if user_id is None:
                continue
            overlay.add_mention(user_id, username)
        return overlay

    def emoji_url(self, record):
        return self.emoji_url_template.format(name=record.emoji)

    def status_of(self, user_id):
        return self.statuses.get(normalize_user_id(user_id))

    def mentions_of(self, user_id):
        user_id = normalize_user_id(user_id)
        return [m for m in self.mentions if m.user_id == user_id]

    def badges_of(self, user_id):
        return [m.badge for m in self.mentions_of(user_id) if m.badge is not None]

    def add_mention(self, user_id, username):
        # Render a new mention, picking up any status already known
        mention = Mention(normalize_user_id(user_id), username)
        if mention.user_id in self.statuses:
            mention.badge = StatusBadge(self, mention.user_id)
        self.mentions.append(mention)
        return mention

    def apply_patch(self, patch):
        # Apply {user_id: status dict | None}; keys not in the patch are untouched
        if not isinstance(patch, dict):
            raise ValueError(f"presence patch must be a mapping, got {type(patch).__name__}")
        # Parse every entry first so a bad one leaves the view untouched
        parsed = [
            (normalize_user_id(key), None if value is None else PresenceRecord.from_payload(value))
            for key, value in patch.items()
        ]
        for user_id, record in parsed:
            if record is None:
                self._remove(user_id)
            else:
                self._upsert(user_id, record)

    def _upsert(self, user_id, record):
        self.statuses[user_id] = record
        for mention in self.mentions_of(user_id):
            if mention.badge is None:
                mention.badge = StatusBadge(self, user_id)
            else:
                mention.badge.tooltip.refresh()
        logger.debug("[PRESENCE] %s -> %s", user_id, record.description)

    def _remove(self, user_id):
        self.statuses.pop(user_id, None)
        for mention in self.mentions_of(user_id):
            if mention.badge is not None:
                mention.badge.tooltip.force_hide()
                mention.badge = None
        logger.debug("[PRESENCE] %s cleared", user_id)

    def render(self):
        return Markup('').join(m.render() for m in self.mentions)
