###########EXTERNAL IMPORTS############

from typing import List, Optional
import os

#######################################

#############LOCAL IMPORTS#############

#######################################


def get_env_int(key: str, default: int) -> int:
    """
    Returns the environment variable parsed as an integer, or the default if unset.

    Raises:
        ValueError: If the variable is set but is not a valid integer.
    """

    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable {key} must be an integer, got: {value}")


def get_env_str(key: str, default: str) -> str:
    """
    Returns the environment variable as a stripped string, or the default if unset or empty.
    """

    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    return value.strip()


def get_env_list(key: str, default: List[str]) -> List[str]:
    """
    Returns a comma separated environment variable as a list of non-empty items.
    """

    value = os.getenv(key)
    if value is None or value.strip() == "":
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


def check_bool_str(string: Optional[str]) -> bool:
    """
    Parses a flag read from the environment. Only "TRUE" (any case) is true.
    """

    if string is not None:
        return string.upper() == "TRUE"
    return False
