"""Container data models"""
from enum import Enum
from dataclasses import dataclass
from typing import Optional


class ContainerState(Enum):
    """Lifecycle state of a named container."""
    ABSENT = "absent"
    STOPPED = "stopped"
    RUNNING = "running"


@dataclass(frozen=True)
class ImageSource:
    """The image a fork container runs, and how it is obtained."""
    image: str  # Pre-built image name, or the tag to build
    dockerfile: Optional[str] = None  # Set when the image is built locally
    variant: Optional[str] = None  # Suffix of a Dockerfile.fork.<variant> match

    @property
    def needs_build(self) -> bool:
        return self.dockerfile is not None
