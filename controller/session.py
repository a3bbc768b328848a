###########EXTERNAL IMPORTS############

import asyncio
import uuid
from typing import Optional, Dict, Any

#######################################

#############LOCAL IMPORTS#############

from analytics.system import SnapshotProvider
from analytics.rate import RateDeriver
from controller.broadcaster import Broadcaster
from controller.scheduler import Scheduler, TimerHandle
from controller.exceptions import InvalidTransition, ProviderError
from model.monitoring.session import SessionState, SessionTimer
import util.functions.date as date
from util.debug import LoggerManager

#######################################


class SamplingSession:
    """
    Monitoring session of one client.

    The session is a state machine IDLE -> RUNNING -> STOPPED. STOPPED is
    terminal: running again requires a fresh session.

    While RUNNING, a recurring tick samples the snapshot provider, derives the
    counter rates with the session's own RateDeriver and publishes the result
    through the broadcaster. A second one-shot timer enforces the maximum
    session duration.

    Ticks never overlap: the next tick is scheduled only once the current one
    has sampled and derived its rates. Publishing only enqueues, so delivery
    never delays the next tick. Stopping cancels both timers at once; a tick
    already in flight may still deliver its sample but schedules nothing.

    Attributes:
        id (str): Identity of the client owning the session.
        provider (SnapshotProvider): Source of system snapshots.
        broadcaster (Broadcaster): Output path towards the client.
        scheduler (Scheduler): Clock and timers driving the session.
        interval_seconds (float): Nominal period between ticks.
        max_seconds (float): Duration after which the session stops on its own.
        state (SessionState): Current lifecycle state.
        started_at_millis (int | None): Unix timestamp in milliseconds of the last start.
        elapsed_seconds (float): Elapsed time, advanced by the nominal interval on every tick.
        rate_deriver (RateDeriver): Counter baselines of this session.
        run_id (str): Identity of this run, stamped on every published snapshot.
    """

    def __init__(
        self,
        id: str,
        provider: SnapshotProvider,
        broadcaster: Broadcaster,
        scheduler: Scheduler,
        interval_seconds: float = 0.5,
        max_seconds: float = 300,
    ):
        if interval_seconds <= 0:
            raise ValueError(f"Sampling interval must be positive, got {interval_seconds}")

        self.id = id
        self.provider = provider
        self.broadcaster = broadcaster
        self.scheduler = scheduler
        self.interval_seconds = interval_seconds
        self.max_seconds = max_seconds
        self.state = SessionState.IDLE
        self.started_at_millis: Optional[int] = None
        self.elapsed_seconds = 0.0
        self.rate_deriver = RateDeriver()
        self.tick_handle: Optional[TimerHandle] = None
        self.expiry_handle: Optional[TimerHandle] = None
        self.tick_task: Optional[asyncio.Task] = None
        self.run_id = uuid.uuid4().hex
        self.completed = False

    @property
    def running(self) -> bool:
        return self.state == SessionState.RUNNING

    def get_timer(self) -> SessionTimer:
        return SessionTimer(elapsed_seconds=self.elapsed_seconds, max_seconds=self.max_seconds)

    def start(self) -> None:
        """
        Starts sampling.

        Raises:
            InvalidTransition: If the session is not IDLE.
        """

        logger = LoggerManager.get_logger(__name__)

        if self.state != SessionState.IDLE:
            raise InvalidTransition(f"Cannot start session {self.id} in state {self.state.value}")

        self.state = SessionState.RUNNING
        self.started_at_millis = date.get_current_timestamp()
        self.elapsed_seconds = 0.0
        self.completed = False
        self.rate_deriver.reset()
        self.tick_handle = self.scheduler.call_later(self.interval_seconds, self.on_tick)
        self.expiry_handle = self.scheduler.call_later(self.max_seconds, self.on_expiry)
        logger.info(f"Started monitoring session {self.id}")

    def stop(self) -> bool:
        """
        Stops sampling. Does nothing unless the session is RUNNING.

        Returns:
            bool: True if the session transitioned to STOPPED.
        """

        logger = LoggerManager.get_logger(__name__)

        if self.state != SessionState.RUNNING:
            return False

        self.halt()
        logger.info(f"Stopped monitoring session {self.id} after {self.elapsed_seconds:.1f}s")
        return True

    def dispose(self) -> None:
        """
        Tears the session down from any state, no timer survives this call.
        """

        logger = LoggerManager.get_logger(__name__)

        previous = self.state
        self.halt()
        logger.info(f"Disposed monitoring session {self.id} (was {previous.value})")

    def halt(self) -> None:
        if self.tick_handle is not None:
            self.tick_handle.cancel()
            self.tick_handle = None
        if self.expiry_handle is not None:
            self.expiry_handle.cancel()
            self.expiry_handle = None
        self.state = SessionState.STOPPED

    def expire(self) -> None:
        """
        Stops the session because it reached its maximum duration and notifies the client.
        """

        logger = LoggerManager.get_logger(__name__)

        if self.state != SessionState.RUNNING:
            return

        self.elapsed_seconds = max(self.elapsed_seconds, self.max_seconds)
        self.halt()
        self.completed = True
        self.broadcaster.publish_complete(self.id, self.elapsed_seconds, self.max_seconds)
        logger.info(f"Monitoring session {self.id} completed after {self.elapsed_seconds:.1f}s")

    def on_expiry(self) -> None:
        self.expiry_handle = None
        self.expire()

    def on_tick(self) -> None:
        self.tick_handle = None
        if self.state != SessionState.RUNNING:
            return
        loop = asyncio.get_running_loop()
        self.tick_task = loop.create_task(self.tick())

    async def tick(self) -> None:
        """
        Samples, derives and publishes one snapshot, then schedules the next tick.

        A failed tick, whether the sample itself or the rate derivation failed,
        is reported to the client as an error event and does not stop the
        session; the elapsed time advances either way.
        """

        logger = LoggerManager.get_logger(__name__)

        tick_started = self.scheduler.now()
        advanced = False
        try:
            snapshot = await self.provider.sample()
            self.advance()
            advanced = True
            timer = self.get_timer()
            enriched = self.rate_deriver.enrich(
                snapshot, elapsed_seconds=timer.elapsed_seconds, progress=timer.progress, run_id=self.run_id
            )
            self.broadcaster.publish(self.id, enriched)
        except asyncio.CancelledError:
            raise
        except ProviderError as e:
            logger.warning(f"Session {self.id} failed to sample: {e}")
            self.report_failure(str(e), advanced)
        except Exception as e:
            logger.exception(f"Session {self.id} got an unexpected error during a tick: {e}")
            self.report_failure(str(e), advanced)

        if self.state != SessionState.RUNNING:
            return

        if self.get_timer().complete:
            self.expire()
            return

        delay = max(0.0, self.interval_seconds - (self.scheduler.now() - tick_started))
        self.tick_handle = self.scheduler.call_later(delay, self.on_tick)

    def report_failure(self, message: str, advanced: bool) -> None:
        logger = LoggerManager.get_logger(__name__)

        if not advanced:
            self.advance()
        try:
            self.broadcaster.publish_error(self.id, message)
        except Exception as e:
            logger.exception(f"Session {self.id} failed to report an error: {e}")

    def advance(self) -> None:
        if self.state == SessionState.RUNNING:
            self.elapsed_seconds += self.interval_seconds

    def get_session(self) -> Dict[str, Any]:
        """
        Returns the session status in a dictionary format.
        """

        return {
            "id": self.id,
            "state": self.state.value,
            "run_id": self.run_id,
            "started_at_millis": self.started_at_millis,
            **self.get_timer().get_data(),
        }
