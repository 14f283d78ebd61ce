"""Node kinds and notification channels.

The kind values are the discriminator tags of the external representation
and must stay byte-for-byte stable.
"""

from __future__ import annotations

from enum import StrEnum


class NodeKind(StrEnum):
    """The four node kinds of a decision tree."""

    SEND_SMS = "SEND_SMS"
    SEND_EMAIL = "SEND_EMAIL"
    CONDITION = "CONDITION"
    LOOP = "LOOP"


class Channel(StrEnum):
    """Delivery channel of a leaf notification."""

    SMS = "sms"
    EMAIL = "email"

