"""
Channel sender interface and registry

A channel sender knows which destinations of a recipient it can reach and
how to attempt delivery to one of them. The dispatcher looks senders up by
channel tag; supporting a new channel means registering another sender.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Sequence
import logging

from aquarent.models.notification import NotificationChannel
from aquarent.services.user_directory import Recipient

logger = logging.getLogger(__name__)

class ChannelSender(ABC):
    """Delivers one message to one destination on one channel"""

    channel: NotificationChannel

    @abstractmethod
    async def destinations(self, recipient: Recipient) -> Sequence[Any]:
        """
        Destinations this channel can reach for the recipient

        An empty result means the channel is skipped for this recipient.
        """

    @abstractmethod
    async def attempt(self, destination: Any, subject: Optional[str], body: str) -> bool:
        """
        Attempt delivery to one destination

        Returns:
            True if the gateway accepted the message. Implementations
            catch their own transport errors and return False.
        """

class ChannelRegistry:
    """Fixed mapping from channel tag to sender"""

    def __init__(self, senders: Iterable[ChannelSender] = ()):
        self._senders: Dict[NotificationChannel, ChannelSender] = {}
        for sender in senders:
            self.register(sender)

    def register(self, sender: ChannelSender) -> None:
        if sender.channel in self._senders:
            logger.info(f"Replacing sender for channel {sender.channel.value}")
        self._senders[sender.channel] = sender

    def get(self, channel: NotificationChannel) -> Optional[ChannelSender]:
        return self._senders.get(NotificationChannel(channel))

    def channels(self) -> List[NotificationChannel]:
        return list(self._senders)

    def __contains__(self, channel) -> bool:
        return NotificationChannel(channel) in self._senders
