###########EXTERNAL IMPORTS############

import json
import uuid
from typing import Dict, Any
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

#######################################

#############LOCAL IMPORTS#############

from controller.registry import SessionRegistry
from controller.exceptions import DeliveryError, InvalidTransition, SessionAlreadyRegistered
from model.monitoring.session import MonitoringEvent
from web.dependencies import services
import web.exceptions as api_exception
import util.functions.web as web_util
from util.debug import LoggerManager

#######################################

router = APIRouter(prefix="/monitoring", tags=["monitoring"])


def parse_command(raw: str) -> MonitoringEvent:
    """
    Parses a client command message of the form {"event": "<name>"}.

    Raises:
        APIException: If the message is not a JSON object or names an unsupported command.
    """

    try:
        message = json.loads(raw)
    except json.JSONDecodeError:
        raise api_exception.APIException(api_exception.Errors.MONITORING.INVALID_JSON)

    if not isinstance(message, dict) or not isinstance(message.get("event"), str):
        raise api_exception.APIException(api_exception.Errors.MONITORING.INVALID_JSON)

    event = message["event"]
    if event not in (MonitoringEvent.START.value, MonitoringEvent.STOP.value):
        raise api_exception.APIException(api_exception.Errors.MONITORING.UNKNOWN_EVENT, f"Unknown monitoring event: {event}")

    return MonitoringEvent(event)


def handle_command(registry: SessionRegistry, client_id: str, raw: str) -> None:
    """
    Applies one client command to the client's session.

    Rejected commands are answered with an error event and leave the session unchanged.
    """

    logger = LoggerManager.get_logger(__name__)

    try:
        event = parse_command(raw)
        try:
            if event == MonitoringEvent.START:
                registry.start(client_id)
            else:
                registry.stop(client_id)
        except InvalidTransition as e:
            raise api_exception.APIException(api_exception.Errors.MONITORING.INVALID_TRANSITION, str(e))

    except api_exception.APIException as e:
        logger.warning(f"Rejected command from client {client_id}: {e.message}")
        registry.broadcaster.publish_error(client_id, e.message)


@router.websocket("/ws")
async def monitoring_socket(
    websocket: WebSocket,
    registry: SessionRegistry = Depends(services.get_registry),
) -> None:
    """
    Persistent monitoring connection of one viewer.

    Client commands: start-monitoring, stop-monitoring.
    Server events: system-data, error, monitoring-complete.
    """

    logger = LoggerManager.get_logger(__name__)

    client_id = uuid.uuid4().hex
    await websocket.accept()

    async def send(message: Dict[str, Any]) -> None:
        try:
            await websocket.send_json(message)
        except (WebSocketDisconnect, RuntimeError) as e:
            raise DeliveryError(str(e) or type(e).__name__) from e

    try:
        registry.on_connect(client_id, send)
    except SessionAlreadyRegistered as e:
        logger.exception(f"Aborted monitoring connection from IP: {web_util.get_ip_address(websocket)}: {e}")
        await websocket.close(code=1011)
        return

    try:
        while True:
            raw = await websocket.receive_text()
            handle_command(registry, client_id, raw)
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.exception(f"Monitoring connection of client {client_id} failed: {e}")
    finally:
        await registry.on_disconnect(client_id)
