"""Image resolution for fork containers."""

import glob
import os
import re
from typing import List, Optional, Tuple, TYPE_CHECKING

from git_fork.constants import DOCKERFILE_AUTO_NAME, DOCKERFILE_SUBDIR, IMAGE_VARIANT_PATTERN
from git_fork.models.container import ImageSource
from git_fork.utils.logging import get_logger
from git_fork.utils.probes import first_match

if TYPE_CHECKING:
    from git_fork.config import Config

logger = get_logger(__name__)

_VARIANT_PREFIX = DOCKERFILE_AUTO_NAME + "."


def normalize_variant(variant: str) -> str:
    """Replace characters that are not valid in an image tag with underscores."""
    return re.sub(IMAGE_VARIANT_PATTERN, "_", variant)


def dockerfile_variant(dockerfile: str) -> Optional[str]:
    """Variant suffix of a ``Dockerfile.fork.<variant>`` path, else None."""
    name = os.path.basename(dockerfile)
    if name.startswith(_VARIANT_PREFIX) and len(name) > len(_VARIANT_PREFIX):
        return normalize_variant(name[len(_VARIANT_PREFIX):])
    return None


def image_tag(branch: str, variant: Optional[str] = None) -> str:
    """Deterministic tag for an image built for a fork."""
    if variant:
        return f"fork_{branch}_{variant}_image"
    return f"fork_{branch}_image"


def dockerfile_search_dirs(cwd: str, repo_root: str) -> List[str]:
    """Directories searched for Dockerfile.fork, in priority order, without duplicates."""
    candidates = [
        cwd,
        os.path.join(cwd, DOCKERFILE_SUBDIR),
        repo_root,
        os.path.join(repo_root, DOCKERFILE_SUBDIR),
    ]

    dirs: List[str] = []
    seen = set()
    for candidate in candidates:
        key = os.path.realpath(candidate)
        if key in seen:
            continue
        seen.add(key)
        dirs.append(candidate)
    return dirs


def find_auto_dockerfile(search_dirs: List[str]) -> Optional[Tuple[str, Optional[str]]]:
    """Find the first Dockerfile.fork or Dockerfile.fork.<variant>.

    Within a directory the plain name wins over variants, and variants are
    taken in sorted order.

    Returns:
        (path, variant) of the match, or None
    """
    for directory in search_dirs:
        if not os.path.isdir(directory):
            continue

        plain = os.path.join(directory, DOCKERFILE_AUTO_NAME)
        if os.path.isfile(plain):
            return plain, None

        for path in sorted(glob.glob(os.path.join(glob.escape(directory), _VARIANT_PREFIX + "*"))):
            variant = dockerfile_variant(path)
            if variant and os.path.isfile(path):
                return path, variant

    return None


class ImageResolver:
    """Decides which image a fork container runs."""

    def __init__(self, config: "Config", cwd: str, repo_root: str):
        """
        Args:
            config: Configuration object
            cwd: Directory the command was invoked from
            repo_root: Top level of the checkout containing cwd
        """
        self.config = config
        self.cwd = cwd
        self.repo_root = repo_root

    def _configured_path(self, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        path = os.path.expanduser(value)
        if not os.path.isabs(path):
            path = os.path.join(self.cwd, path)
        return path

    def _from_dockerfile(self, branch: str, dockerfile: str, variant: Optional[str]) -> ImageSource:
        return ImageSource(image=image_tag(branch, variant), dockerfile=dockerfile, variant=variant)

    def resolve(self, branch: str) -> ImageSource:
        """Resolve the image source for a branch.

        Priority: override Dockerfile (if the file exists), automatically
        discovered Dockerfile.fork[.<variant>], default Dockerfile (if the
        file exists), then the configured pre-built image.
        """

        def override():
            path = self._configured_path(self.config.container_dockerfile)
            if path and os.path.isfile(path):
                logger.debug(f"Using override Dockerfile {path}")
                return self._from_dockerfile(branch, path, dockerfile_variant(path))
            if path:
                logger.debug(f"Override Dockerfile {path} not found, skipping")
            return None

        def auto():
            match = find_auto_dockerfile(dockerfile_search_dirs(self.cwd, self.repo_root))
            if match:
                path, variant = match
                logger.debug(f"Discovered {path}")
                return self._from_dockerfile(branch, path, variant)
            return None

        def default():
            path = self._configured_path(self.config.container_default_dockerfile)
            if path and os.path.isfile(path):
                logger.debug(f"Using default Dockerfile {path}")
                return self._from_dockerfile(branch, path, dockerfile_variant(path))
            return None

        def prebuilt():
            return ImageSource(image=self.config.container_image)

        return first_match([override, auto, default, prebuilt])
