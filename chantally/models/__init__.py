# Models package
# Import all models here for convenience

from chantally.models.user import User, UserStatus
from chantally.models.chat import (
    Channel, ChannelMembership, NotNullViolation,
    CHANNEL_STATUSES, CHANNEL_TYPES, UNCOUNTED_STATUSES
)
from chantally.models.content import Message

__all__ = [
    'User', 'UserStatus',
    'Channel', 'ChannelMembership', 'NotNullViolation',
    'CHANNEL_STATUSES', 'CHANNEL_TYPES', 'UNCOUNTED_STATUSES',
    'Message'
]
