###########EXTERNAL IMPORTS############

from dataclasses import dataclass
from typing import Dict, Any, Optional

#######################################

#############LOCAL IMPORTS#############

#######################################


@dataclass
class APIErrorDef:
    """Defines a canonical API error with status code, identifier, and default message."""

    status_code: int
    error_section: str
    error_id: str
    default_message: str


class APIException(Exception):
    """Base exception for API errors constructed from a centralized error definition."""

    def __init__(
        self,
        error: APIErrorDef,
        message: str | None = None,
        details: Optional[Dict[str, Any]] = None,
    ):

        self.status_code = error.status_code
        self.error_id = error.error_id
        self.error_section = error.error_section
        self.message = message or error.default_message
        self.details = details or {}
        super().__init__(self.message)


##########     S Y S T E M     E X C E P T I O N S     ##########


class SnapshotUnavailable(APIException):
    """Raised when the system snapshot could not be collected for a request."""

    pass


##########     C E N T R A L I Z E D     E R R O R S     O B J E C T     ##########


class Errors:
    INTERNAL_SERVER_ERROR = APIErrorDef(
        status_code=500,
        error_section="GLOBAL",
        error_id="INTERNAL_SERVER_ERROR",
        default_message="Got an unexpected internal server error.",
    )

    class SYSTEM:
        SNAPSHOT_UNAVAILABLE = APIErrorDef(
            status_code=500,
            error_section="SYSTEM",
            error_id="SNAPSHOT_UNAVAILABLE",
            default_message="The system information could not be collected.",
        )

    class MONITORING:
        INVALID_JSON = APIErrorDef(
            status_code=400,
            error_section="MONITORING",
            error_id="INVALID_JSON",
            default_message="Monitoring messages must be valid JSON objects.",
        )
        UNKNOWN_EVENT = APIErrorDef(
            status_code=400,
            error_section="MONITORING",
            error_id="UNKNOWN_EVENT",
            default_message="Unknown monitoring event.",
        )
        INVALID_TRANSITION = APIErrorDef(
            status_code=409,
            error_section="MONITORING",
            error_id="INVALID_TRANSITION",
            default_message="The monitoring session cannot handle this command in its current state.",
        )
