###########EXTERNAL IMPORTS############

from starlette.requests import HTTPConnection

#######################################

#############LOCAL IMPORTS#############

#######################################


def get_ip_address(connection: HTTPConnection) -> str:
    """
    Returns the client's IP address from a request or WebSocket connection,
    or "unknown" if the connection has no client information.
    """

    if connection.client is None:
        return "unknown"

    return connection.client.host


def get_api_url(connection: HTTPConnection) -> str:
    """
    Returns the path of the API URL from the given request or WebSocket connection.
    """

    return connection.url.path
