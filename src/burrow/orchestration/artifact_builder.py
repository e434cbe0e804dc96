"""
Compilation of validated sources into cached server binaries.

Binaries live in a shared cache directory under a name derived from the
source path. The key is the path string, not the file contents, so an
in-place edit rebuilds into the same file name.
"""

import hashlib
import logging
import subprocess
from pathlib import Path
from typing import List, Optional

from ..models.config import DEFAULT_BUILD_COMMAND
from ..validation import BuildError, ErrorSeverity, handle_error
from .event_bus import EventBus

logger = logging.getLogger(__name__)


class ArtifactBuilder:
    """
    Runs the build toolchain and manages the resulting binary files.
    """

    def __init__(
        self,
        cache_dir: Path,
        build_command: Optional[List[str]] = None,
        binary_prefix: str = "burrow-server-",
    ):
        """
        Args:
            cache_dir: Directory that receives built binaries
            build_command: argv template with {source} and {output} placeholders
            binary_prefix: File name prefix for built binaries
        """
        self.cache_dir = Path(cache_dir)
        self.build_command = list(build_command or DEFAULT_BUILD_COMMAND)
        self.binary_prefix = binary_prefix

    def binary_path_for(self, source_path: Path) -> Path:
        """Deterministic cache location for the binary built from `source_path`."""
        digest = hashlib.md5(str(source_path).encode("utf-8")).hexdigest()
        return self.cache_dir / f"{self.binary_prefix}{digest[:12]}"

    def _render_command(self, source_path: Path, output_path: Path) -> List[str]:
        return [
            part.format(source=str(source_path), output=str(output_path))
            for part in self.build_command
        ]

    def build(self, source_path: Path) -> Path:
        """
        Build `source_path` into the cache directory.

        Toolchain output goes straight to this process's stdout/stderr.

        Args:
            source_path: Absolute, validated source path

        Returns:
            Path of the built binary

        Raises:
            BuildError: If the cache directory cannot be created, the toolchain
                is missing, or the build exits non-zero
        """
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise BuildError(f"failed to create cache directory: {e}") from e

        binary_path = self.binary_path_for(source_path)
        command = self._render_command(source_path, binary_path)
        logger.info(f"Building {source_path} -> {binary_path}")
        logger.debug(f"Build command: {command}")

        try:
            result = subprocess.run(command, check=False)
        except FileNotFoundError as e:
            raise BuildError(f"build toolchain not found: {command[0]}") from e
        except OSError as e:
            raise BuildError(f"build failed to start: {e}") from e

        if result.returncode != 0:
            raise BuildError(
                f"build failed: exit status {result.returncode}",
                returncode=result.returncode,
            )

        if not binary_path.exists():
            raise BuildError(f"build produced no binary at {binary_path}")

        logger.info(f"Build finished: {binary_path}")
        return binary_path

    def cleanup(self, binary_path: Optional[Path], events: Optional[EventBus] = None) -> bool:
        """
        Remove a built binary. Safe to call repeatedly.

        Args:
            binary_path: Binary to remove; None is a no-op
            events: Bus to report the outcome on

        Returns:
            False only if the file existed and could not be removed
        """
        if binary_path is None:
            return True

        try:
            Path(binary_path).unlink(missing_ok=True)
        except OSError as e:
            handle_error(
                error=e,
                context=f"removing binary {binary_path}",
                severity=ErrorSeverity.WARNING,
                reraise=False,
                logger=logger
            )
            if events is not None:
                events.error(f"failed to cleanup binary: {e}")
            return False

        logger.debug(f"Removed binary {binary_path}")
        if events is not None:
            events.update("cleanup successful")
        return True
