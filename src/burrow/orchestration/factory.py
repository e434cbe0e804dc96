"""
Construction-time selection of the server service variant.
"""

from typing import Optional

from ..config import get_config
from ..models.config import AppConfig
from .orchestrator import Orchestrator
from .path_validator import PathValidator
from .service import ServerService, SimulatedServerService


def create_server_service(config: Optional[AppConfig] = None,
                          simulate: bool = False) -> ServerService:
    """
    Create the server service for this process.

    Args:
        config: Application configuration; the global one when omitted
        simulate: Use the in-memory variant instead of real subprocesses

    Returns:
        A ServerService implementation
    """
    config = config or get_config()
    if simulate:
        return SimulatedServerService(PathValidator(config.server.source_suffix))
    return Orchestrator.from_config(config)
