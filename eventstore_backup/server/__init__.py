from .base import ServerController, ServerControlError
from .docker import DockerComposeController

__all__ = ["ServerController", "ServerControlError", "DockerComposeController"]
