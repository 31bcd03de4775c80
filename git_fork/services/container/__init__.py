"""Container isolation services for git-fork."""

from .runtime import ContainerRuntime
from .images import ImageResolver, image_tag, normalize_variant
from .manager import ContainerManager, container_name

__all__ = [
    "ContainerRuntime",
    "ImageResolver",
    "ContainerManager",
    "container_name",
    "image_tag",
    "normalize_variant",
]
