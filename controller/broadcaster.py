###########EXTERNAL IMPORTS############

import asyncio
from typing import Optional, Dict, Any, Callable, Awaitable

#######################################

#############LOCAL IMPORTS#############

from model.analytics.system import EnrichedSnapshot
from model.monitoring.message import OutboundMessage
from model.monitoring.session import MonitoringEvent
from controller.exceptions import DeliveryError, SessionAlreadyRegistered
from util.debug import LoggerManager

#######################################

SendFunc = Callable[[Dict[str, Any]], Awaitable[None]]


class ClientChannel:
    """
    Outbound path of one connected client.

    Attributes:
        client_id (str): Identity of the client.
        send (SendFunc): Coroutine function delivering one JSON message to the client.
        queue (asyncio.Queue): Pending messages, bounded so a slow client cannot grow memory.
        sender_task (asyncio.Task | None): Task draining the queue.
    """

    def __init__(self, client_id: str, send: SendFunc, queue_size: int):
        self.client_id = client_id
        self.send = send
        self.queue: asyncio.Queue[OutboundMessage] = asyncio.Queue(maxsize=queue_size)
        self.sender_task: Optional[asyncio.Task] = None

    def clear_queue(self) -> None:
        """
        Clears all pending messages from the queue.
        """

        while not self.queue.empty():
            try:
                self.queue.get_nowait()
            except asyncio.QueueEmpty:
                break


class Broadcaster:
    """
    Delivers session output to the client that owns the session.

    Every client gets its own bounded queue and sender task. Publishing only
    enqueues, so a slow or failing connection never delays the sampling timers:
    when a queue is full the oldest pending message is dropped, and a failed
    delivery is logged and skipped.

    Messages are only ever routed by client id; a client never receives another
    client's data.
    """

    def __init__(self, queue_size: int = 100):
        self.queue_size = queue_size
        self.channels: Dict[str, ClientChannel] = {}

    def __contains__(self, client_id: str) -> bool:
        return client_id in self.channels

    def register(self, client_id: str, send: SendFunc) -> None:
        """
        Attaches a client and starts its sender task.

        Raises:
            SessionAlreadyRegistered: If the client is already attached.
        """

        if client_id in self.channels:
            raise SessionAlreadyRegistered(f"Client {client_id} is already registered in the broadcaster")

        channel = ClientChannel(client_id, send, self.queue_size)
        loop = asyncio.get_running_loop()
        channel.sender_task = loop.create_task(self.sender(channel))
        self.channels[client_id] = channel

    async def unregister(self, client_id: str) -> None:
        """
        Detaches a client, discarding its pending messages.
        """

        channel = self.channels.pop(client_id, None)
        if channel is None:
            return

        channel.clear_queue()
        if channel.sender_task:
            channel.sender_task.cancel()
            try:
                await channel.sender_task
            except asyncio.CancelledError:
                pass
            channel.sender_task = None

    def publish(self, client_id: str, snapshot: EnrichedSnapshot) -> bool:
        """
        Queues one enriched snapshot for the client.

        Returns:
            bool: False if the client is not attached.
        """

        return self.enqueue(client_id, OutboundMessage(MonitoringEvent.SYSTEM_DATA, snapshot.get_data()))

    def publish_error(self, client_id: str, message: str) -> bool:
        """
        Queues a session scoped error notification for the client.
        """

        return self.enqueue(client_id, OutboundMessage(MonitoringEvent.ERROR, {"message": message}))

    def publish_complete(self, client_id: str, elapsed_seconds: float, duration_seconds: float) -> bool:
        """
        Queues the notification of a session that reached its maximum duration.
        """

        return self.enqueue(
            client_id,
            OutboundMessage(MonitoringEvent.COMPLETE, {"elapsed_seconds": elapsed_seconds, "duration_seconds": duration_seconds}),
        )

    def enqueue(self, client_id: str, message: OutboundMessage) -> bool:
        logger = LoggerManager.get_logger(__name__)

        channel = self.channels.get(client_id)
        if channel is None:
            logger.debug(f"Dropped {message.event.value} for unknown client {client_id}")
            return False

        if channel.queue.full():
            dropped = channel.queue.get_nowait()
            logger.warning(f"Outbound queue of client {client_id} is full, dropped pending {dropped.event.value}")

        channel.queue.put_nowait(message)
        return True

    async def sender(self, channel: ClientChannel) -> None:
        """
        Sends the messages of one client's queue in order.

        This method runs until the client is unregistered.
        """

        logger = LoggerManager.get_logger(__name__)

        while True:
            message = await channel.queue.get()
            try:
                await channel.send(message.get_data())
            except asyncio.CancelledError:
                raise
            except DeliveryError as e:
                logger.warning(f"Failed to deliver {message.event.value} to client {channel.client_id}: {e}")
            except Exception as e:
                logger.exception(f"Unexpected error delivering {message.event.value} to client {channel.client_id}: {e}")

    async def close(self) -> None:
        """
        Detaches every client.
        """

        for client_id in list(self.channels):
            await self.unregister(client_id)
