###########EXTERNAL IMPORTS############

import asyncio
import json
from typing import Optional, Dict, Any, Callable, Set
import websockets

#######################################

#############LOCAL IMPORTS#############

from model.monitoring.config import MonitorConfig
from model.monitoring.history import HistoryRecord
from model.monitoring.session import MonitoringEvent, SessionTimer
from viewer.history import RollingHistoryBuffer
from viewer.storage import HistoryStore
import util.functions.date as date
from util.debug import LoggerManager

#######################################


class MonitorViewer:
    """
    Client side of a monitoring session.

    The viewer sends the start and stop commands, feeds every received
    system-data payload into its rolling history and rebuilds the session timer
    from the elapsed time carried by each payload. Whenever monitoring ends
    (manual stop, completion notification or lost connection) the history is
    saved to the store.

    The message handling (`begin`, `handle_message`, `end`) is independent of the
    transport; `run` drives it over a WebSocket connection.

    Attributes:
        config (MonitorConfig): History capacity, visualization window and maximum duration.
        store (HistoryStore | None): Sink receiving the history when monitoring ends.
        history (RollingHistoryBuffer): Samples of the current session.
        timer (SessionTimer): Elapsed time display state.
        monitoring (bool): Whether a session is in progress.
        completed (bool): Whether the last session ended by reaching its maximum duration.
        run_id (str | None): Server run the current samples come from.
        finished_run_ids (Set[str]): Runs already ended, their late samples are dropped.
        on_update (Callable | None): Called after every ingested sample.
        on_error (Callable | None): Called with the message of every error event.
        on_complete (Callable | None): Called when the server reports the session complete.
    """

    def __init__(
        self,
        config: MonitorConfig,
        store: Optional[HistoryStore] = None,
        on_update: Optional[Callable[["MonitorViewer"], None]] = None,
        on_error: Optional[Callable[[str], None]] = None,
        on_complete: Optional[Callable[["MonitorViewer"], None]] = None,
    ):
        self.config = config
        self.store = store
        self.history = RollingHistoryBuffer(max_points=config.max_data_points)
        self.timer = SessionTimer(elapsed_seconds=0.0, max_seconds=config.max_monitoring_seconds)
        self.monitoring = False
        self.completed = False
        self.started_at_millis: Optional[int] = None
        self.run_id: Optional[str] = None
        self.finished_run_ids: Set[str] = set()
        self.on_update = on_update
        self.on_error = on_error
        self.on_complete = on_complete

    @staticmethod
    def command(event: MonitoringEvent) -> str:
        return json.dumps({"event": event.value})

    def begin(self) -> str:
        """
        Resets the history and the timer for a new session.

        Returns:
            The start command to send to the server.
        """

        logger = LoggerManager.get_logger(__name__)

        self.history.reset()
        self.timer = SessionTimer(elapsed_seconds=0.0, max_seconds=self.config.max_monitoring_seconds)
        self.monitoring = True
        self.completed = False
        self.started_at_millis = date.get_current_timestamp()
        self.run_id = None
        logger.info("Monitoring started")
        return MonitorViewer.command(MonitoringEvent.START)

    def end(self) -> Optional[str]:
        """
        Ends the current session and saves the history. Does nothing when not monitoring.

        Returns:
            The stop command to send to the server, or None if no session was in progress.
        """

        logger = LoggerManager.get_logger(__name__)

        if not self.monitoring:
            return None

        self.monitoring = False
        if self.run_id:
            self.finished_run_ids.add(self.run_id)
        self.save()
        logger.info(f"Monitoring stopped at {self.timer.format()}")
        return MonitorViewer.command(MonitoringEvent.STOP)

    def save(self) -> None:
        logger = LoggerManager.get_logger(__name__)

        if self.store is None:
            return

        record = HistoryRecord(
            series_data=self.history.series(),
            captured_at_epoch_millis=date.get_current_timestamp(),
            duration_seconds=self.timer.elapsed_seconds,
        )
        try:
            self.store.save(record)
        except OSError as e:
            logger.error(f"Failed to save monitoring history: {e}")

    def handle_message(self, message: Dict[str, Any]) -> None:
        """
        Applies one server event to the viewer state.
        """

        logger = LoggerManager.get_logger(__name__)

        event = message.get("event")
        data = message.get("data") or {}

        if event == MonitoringEvent.SYSTEM_DATA.value:
            if not self.monitoring:
                return
            session = data.get("session") or {}
            run_id = session.get("run_id") or ""
            if run_id in self.finished_run_ids:
                logger.debug(f"Dropped late sample of finished run {run_id}")
                return
            if run_id:
                self.run_id = run_id
            self.history.append_snapshot(data)
            self.timer = SessionTimer(
                elapsed_seconds=session.get("elapsed_seconds", self.timer.elapsed_seconds),
                max_seconds=self.config.max_monitoring_seconds,
            )
            if self.on_update:
                self.on_update(self)

        elif event == MonitoringEvent.ERROR.value:
            error_message = data.get("message", "")
            logger.warning(f"Server reported an error: {error_message}")
            if self.on_error:
                self.on_error(error_message)

        elif event == MonitoringEvent.COMPLETE.value:
            self.timer = SessionTimer(
                elapsed_seconds=data.get("elapsed_seconds", self.timer.elapsed_seconds),
                max_seconds=self.config.max_monitoring_seconds,
            )
            self.completed = True
            # The server session is already stopped, no command to send
            self.end()
            if self.on_complete:
                self.on_complete(self)

        else:
            logger.debug(f"Ignored unknown event: {event}")

    def visible_series(self) -> Dict[str, Any]:
        """
        Returns the series of the visualization window.
        """

        return self.history.series(self.config.visualization_window)

    async def run(self, url: str, duration: Optional[float] = None) -> None:
        """
        Connects to the server and monitors until the session completes, the
        optional duration elapses or the task is cancelled.

        Args:
            url: WebSocket URL of the monitoring endpoint.
            duration: Seconds after which to stop monitoring, None to wait for completion.
        """

        logger = LoggerManager.get_logger(__name__)

        async with websockets.connect(url) as connection:
            logger.info(f"Connected to {url}")
            await connection.send(self.begin())
            try:
                await asyncio.wait_for(self.receive(connection), timeout=duration)
            except asyncio.TimeoutError:
                pass
            finally:
                command = self.end()
                if command is not None:
                    try:
                        await connection.send(command)
                    except websockets.ConnectionClosed:
                        pass

    async def receive(self, connection) -> None:
        logger = LoggerManager.get_logger(__name__)

        try:
            async for raw in connection:
                try:
                    message = json.loads(raw)
                except json.JSONDecodeError:
                    logger.warning("Received a malformed message")
                    continue
                self.handle_message(message)
                if self.completed:
                    return
        except websockets.ConnectionClosed:
            logger.warning("Connection to the server was lost")
