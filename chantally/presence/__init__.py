# Client-side presence overlay for user statuses on mentions

from chantally.presence.tooltip import StatusTooltip, TooltipState, TooltipNode, Scheduler
from chantally.presence.overlay import (
    PresenceOverlay, PresenceRecord, Mention, StatusBadge, parse_mentions
)
from chantally.presence.client import PresenceClient

__all__ = [
    'StatusTooltip', 'TooltipState', 'TooltipNode', 'Scheduler',
    'PresenceOverlay', 'PresenceRecord', 'Mention', 'StatusBadge', 'parse_mentions',
    'PresenceClient'
]
