"""Protocol layer: messages and local commands."""

from chainprop.core.events import MESSAGE_OVERHEAD
from chainprop.protocol.commands import Command, MintingTask
from chainprop.protocol.messages import BlockMessage

__all__ = [
    "MESSAGE_OVERHEAD",
    "BlockMessage",
    "Command",
    "MintingTask",
]
