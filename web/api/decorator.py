###########EXTERNAL IMPORTS############

from functools import wraps
from typing import Dict, Any, Callable, Awaitable
from fastapi import Request
from fastapi.responses import JSONResponse

#######################################

#############LOCAL IMPORTS#############

from util.debug import LoggerManager
import util.functions.web as web_util
import web.exceptions as api_exception

#######################################


EndpointFunc = Callable[..., Awaitable[JSONResponse]]


def api_endpoint(func: EndpointFunc) -> Callable:
    """
    Wraps an endpoint so that API exceptions and unexpected errors become JSON error responses.

    The error body always carries `message`, `error_section` and `error_code`,
    plus the exception details when present.
    """

    @wraps(func)
    async def wrapper(request: Request, **kwargs) -> JSONResponse:

        logger = LoggerManager.get_logger(__name__)

        try:
            return await func(request, **kwargs)

        except api_exception.APIException as e:
            logger.warning(f"Failed {web_util.get_api_url(request)} API from IP: {web_util.get_ip_address(request)} due to error: {str(e.message)}")
            content: Dict[str, Any] = {}
            content["message"] = e.message
            content["error_section"] = e.error_section
            content["error_code"] = e.error_id
            content.update(e.details)
            return JSONResponse(status_code=e.status_code, content=content)

        except Exception as e:
            logger.exception(f"Failed {web_util.get_api_url(request)} API due to server error: {str(e)}")
            content = {}
            content["message"] = str(e)
            content["error_section"] = api_exception.Errors.INTERNAL_SERVER_ERROR.error_section
            content["error_code"] = api_exception.Errors.INTERNAL_SERVER_ERROR.error_id
            return JSONResponse(status_code=api_exception.Errors.INTERNAL_SERVER_ERROR.status_code, content=content)

    return wrapper
