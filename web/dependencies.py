###########EXTERNAL IMPORTS############

from typing import Optional

#######################################

#############LOCAL IMPORTS#############

from analytics.system import SnapshotProvider
from controller.registry import SessionRegistry
from model.monitoring.config import MonitorConfig

#######################################


class HTTPDependencies:
    """
    Dependency injection container for HTTP server service components.

    The container is populated once during server startup and then accessed by
    the route handlers through FastAPI `Depends` getters.

    Attributes:
        config (MonitorConfig | None): Effective monitoring parameters
        provider (SnapshotProvider | None): Snapshot source for single sample requests
        registry (SessionRegistry | None): Monitoring sessions of the connected clients
    """

    def __init__(
        self,
        config: Optional[MonitorConfig] = None,
        provider: Optional[SnapshotProvider] = None,
        registry: Optional[SessionRegistry] = None,
    ):

        self.config = config
        self.provider = provider
        self.registry = registry

    def set_dependencies(self, config: MonitorConfig, provider: SnapshotProvider, registry: SessionRegistry) -> None:
        """
        Set all dependency instances at once during application startup.

        Args:
            config: MonitorConfig instance with the monitoring parameters
            provider: SnapshotProvider instance used for single sample requests
            registry: SessionRegistry instance owning the client sessions
        """

        self.config = config
        self.provider = provider
        self.registry = registry

    def get_config(self) -> MonitorConfig:
        """
        Get the MonitorConfig instance.

        Raises:
            ValueError: If MonitorConfig has not been initialized
        """
        if self.config:
            return self.config
        raise ValueError("Monitor Config is not yet initialized in HTTP Dependencies")

    def get_provider(self) -> SnapshotProvider:
        """
        Get the SnapshotProvider service instance.

        Raises:
            ValueError: If SnapshotProvider has not been initialized
        """
        if self.provider:
            return self.provider
        raise ValueError("Snapshot Provider is not yet initialized in HTTP Dependencies")

    def get_registry(self) -> SessionRegistry:
        """
        Get the SessionRegistry service instance.

        Raises:
            ValueError: If SessionRegistry has not been initialized
        """
        if self.registry is not None:
            return self.registry
        raise ValueError("Session Registry is not yet initialized in HTTP Dependencies")


services = HTTPDependencies()  # Global HTTPDependencies instance for application-wide dependency access.
