# Functions package
# counts and consistency import the models, which import dates from here,
# so those two are imported by module path rather than re-exported

from chantally.functions.dates import utcnow, to_iso, parse_iso
from chantally.functions.publisher import (
    ChangePublisher, SocketIOChangePublisher, RecordingPublisher,
    membership_payload, get_publisher
)

__all__ = [
    'utcnow', 'to_iso', 'parse_iso',
    'ChangePublisher', 'SocketIOChangePublisher', 'RecordingPublisher',
    'membership_payload', 'get_publisher'
]
