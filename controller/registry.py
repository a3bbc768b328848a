###########EXTERNAL IMPORTS############

from typing import Optional, Dict, List, Any

#######################################

#############LOCAL IMPORTS#############

from analytics.system import SnapshotProvider
from controller.broadcaster import Broadcaster, SendFunc
from controller.scheduler import Scheduler, AsyncioScheduler
from controller.session import SamplingSession
from controller.exceptions import InvalidTransition, SessionAlreadyRegistered
from model.monitoring.config import MonitorConfig
from model.monitoring.session import SessionState
from util.debug import LoggerManager

#######################################


class SessionRegistry:
    """
    Owns the sampling sessions of every connected client.

    Exactly one session exists per client id for the lifetime of the client's
    connection. A stopped session is replaced by a fresh one when the client
    starts monitoring again.

    Attributes:
        provider (SnapshotProvider): Snapshot source shared by the sessions.
        broadcaster (Broadcaster): Output path shared by the sessions.
        config (MonitorConfig): Sampling interval and maximum duration of new sessions.
        scheduler (Scheduler): Timer source handed to new sessions.
        sessions (Dict[str, SamplingSession]): Sessions keyed by client id.
    """

    def __init__(
        self,
        provider: SnapshotProvider,
        broadcaster: Broadcaster,
        config: MonitorConfig,
        scheduler: Optional[Scheduler] = None,
    ):
        self.provider = provider
        self.broadcaster = broadcaster
        self.config = config
        self.scheduler = scheduler or AsyncioScheduler()
        self.sessions: Dict[str, SamplingSession] = {}

    def __len__(self) -> int:
        return len(self.sessions)

    def __contains__(self, client_id: str) -> bool:
        return client_id in self.sessions

    def create_session(self, client_id: str) -> SamplingSession:
        return SamplingSession(
            id=client_id,
            provider=self.provider,
            broadcaster=self.broadcaster,
            scheduler=self.scheduler,
            interval_seconds=self.config.sampling_interval_seconds,
            max_seconds=self.config.max_monitoring_seconds,
        )

    def on_connect(self, client_id: str, send: Optional[SendFunc] = None) -> SamplingSession:
        """
        Registers a newly connected client with an IDLE session.

        Args:
            client_id: Identity of the client connection.
            send: Coroutine function delivering messages to the client, attached to the broadcaster when given.

        Returns:
            SamplingSession: The client's session.

        Raises:
            SessionAlreadyRegistered: If the client already owns a session.
        """

        logger = LoggerManager.get_logger(__name__)

        if client_id in self.sessions:
            raise SessionAlreadyRegistered(f"Client {client_id} already owns a monitoring session")

        session = self.create_session(client_id)
        if send is not None:
            self.broadcaster.register(client_id, send)
        self.sessions[client_id] = session
        logger.info(f"Client connected: {client_id} ({len(self.sessions)} active)")
        return session

    async def on_disconnect(self, client_id: str) -> None:
        """
        Tears down and removes the client's session. Unknown clients are ignored.
        """

        logger = LoggerManager.get_logger(__name__)

        session = self.sessions.pop(client_id, None)
        if session is not None:
            session.dispose()
        await self.broadcaster.unregister(client_id)
        if session is not None:
            logger.info(f"Client disconnected: {client_id} ({len(self.sessions)} active)")

    def get(self, client_id: str) -> SamplingSession:
        """
        Returns the client's session.

        Raises:
            KeyError: If the client is not registered.
        """

        session = self.sessions.get(client_id)
        if session is None:
            raise KeyError(f"Client {client_id} has no monitoring session")
        return session

    def renew(self, client_id: str) -> SamplingSession:
        """
        Replaces a STOPPED session with a fresh IDLE one.

        Raises:
            KeyError: If the client is not registered.
            InvalidTransition: If the current session is not STOPPED.
        """

        old_session = self.get(client_id)
        if old_session.state != SessionState.STOPPED:
            raise InvalidTransition(f"Cannot renew session {client_id} in state {old_session.state.value}")

        old_session.dispose()
        session = self.create_session(client_id)
        self.sessions[client_id] = session
        return session

    def start(self, client_id: str) -> SamplingSession:
        """
        Starts monitoring for the client, replacing its session first if it already ran.

        Raises:
            KeyError: If the client is not registered.
            InvalidTransition: If the client's session is already RUNNING.
        """

        session = self.get(client_id)
        if session.state == SessionState.STOPPED:
            session = self.renew(client_id)
        session.start()
        return session

    def stop(self, client_id: str) -> bool:
        """
        Stops monitoring for the client.

        Returns:
            bool: True if a running session was stopped.

        Raises:
            KeyError: If the client is not registered.
        """

        return self.get(client_id).stop()

    def get_sessions(self) -> List[Dict[str, Any]]:
        return [session.get_session() for session in self.sessions.values()]

    async def close(self) -> None:
        """
        Tears down every session.
        """

        for client_id in list(self.sessions):
            await self.on_disconnect(client_id)
        await self.broadcaster.close()
