###########EXTERNAL IMPORTS############

#######################################

#############LOCAL IMPORTS#############

#######################################

##########     S A M P L I N G     E X C E P T I O N S     ##########


class ProviderError(Exception):
    """Raised when a system snapshot could not be collected."""

    pass


class InvalidInterval(Exception):
    """Raised when a counter observation is not strictly newer than the previous one."""

    pass


##########     S E S S I O N     E X C E P T I O N S     ##########


class InvalidTransition(Exception):
    """Raised when a session command arrives in a state that forbids it."""

    pass


class SessionAlreadyRegistered(Exception):
    """Raised when a session is created for a client that already owns one."""

    pass


##########     D E L I V E R Y     E X C E P T I O N S     ##########


class DeliveryError(Exception):
    """Raised when a message could not be delivered to a connected client."""

    pass
