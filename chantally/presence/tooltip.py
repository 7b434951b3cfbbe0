# Hover tooltip for a status badge
#
#   HIDDEN --mouseenter--> PENDING --reveal--> VISIBLE
#   PENDING/VISIBLE --mouseleave--> HIDDEN (pending reveal cancelled, node detached)
#
# Every reveal renders a new TooltipNode; nothing is cached between hovers.

import enum
import logging
import threading
from dataclasses import dataclass
from markupsafe import Markup

logger = logging.getLogger(__name__)


class TooltipState(enum.Enum):
    HIDDEN = 'hidden'
    PENDING = 'pending'
    VISIBLE = 'visible'


class Scheduler:
    # call_later on top of threading.Timer

    def call_later(self, delay, callback):
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


@dataclass
class TooltipNode:
    description: str
    emoji_url: str
    until: str
    html: Markup


def format_until(ends_at):
    if ends_at is None:
        return ''
    return ends_at.strftime('%b %d, %H:%M')


def render_tooltip(record, emoji_url):
    until = format_until(record.ends_at)
    html = Markup(
        '<div class="user-status-message-tooltip">'
        '<img class="emoji" src="{src}" alt="{emoji}">'
        '<span class="user-status-tooltip-description">{description}</span>'
    ).format(src=emoji_url, emoji=record.emoji, description=record.description)
    if until:
        html += Markup('<div class="user-status-tooltip-until">Until: {}</div>').format(until)
    html += Markup('</div>')
    return TooltipNode(record.description, emoji_url, until, html)


class StatusTooltip:

    def __init__(self, get_record, emoji_url_for, scheduler=None, delay=0.0):
        # get_record() returns the current PresenceRecord or None
        self._get_record = get_record
        self._emoji_url_for = emoji_url_for
        self._scheduler = scheduler or Scheduler()
        self._delay = delay
        self._timer = None
        # Reveals run on timer threads; mouse events and patches on others
        self._lock = threading.RLock()
        # Bumped on every transition so a timer that already fired is ignored
        self._generation = 0
        self.state = TooltipState.HIDDEN
        self.node = None

    @property
    def visible(self):
        return self.state is TooltipState.VISIBLE

    def mouseenter(self):
        with self._lock:
            if self.state is not TooltipState.HIDDEN:
                return
            self._cancel_timer()
            self._generation += 1
            self.state = TooltipState.PENDING
            generation = self._generation
            if self._delay <= 0:
                self._reveal(generation)
                return
            self._timer = self._scheduler.call_later(
                self._delay, lambda: self._reveal(generation)
            )

    def mouseleave(self):
        self._hide()

    def force_hide(self):
        # Record removed while shown
        self._hide()

    def refresh(self):
        # Re-render a visible tooltip after the record was replaced
        with self._lock:
            if self.state is not TooltipState.VISIBLE:
                return
            generation = self._generation
            record = self._get_record()
            if record is None:
                self._hide()
                return
            node = render_tooltip(record, self._emoji_url_for(record))
            if generation == self._generation:
                self.node = node

    def _reveal(self, generation):
        with self._lock:
            if generation != self._generation or self.state is not TooltipState.PENDING:
                return
            self._timer = None
            record = self._get_record()
            if record is None:
                self._hide()
                return
            node = render_tooltip(record, self._emoji_url_for(record))
            # A leave while the record was read wins over this reveal
            if generation != self._generation or self.state is not TooltipState.PENDING:
                return
            self.node = node
            self.state = TooltipState.VISIBLE
        logger.debug("[TOOLTIP] shown: %s", record.description)

    def _hide(self):
        with self._lock:
            self._cancel_timer()
            self._generation += 1
            self.state = TooltipState.HIDDEN
            self.node = None

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
