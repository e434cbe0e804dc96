"""
Validation of source paths handed to the orchestrator.
"""

import logging
from pathlib import Path
from typing import Union

from ..validation import ValidationError, ValidationReason

logger = logging.getLogger(__name__)


class PathValidator:
    """
    Resolves a source path and checks it can be built.

    Pure and synchronous: nothing is created or modified.
    """

    def __init__(self, source_suffix: str = ".go"):
        self.source_suffix = source_suffix

    def validate(self, path: Union[str, Path]) -> Path:
        """
        Resolve `path` to an absolute path and check it is a buildable source.

        Args:
            path: Source file path, absolute or relative to the working directory

        Returns:
            The absolute path

        Raises:
            ValidationError: NOT_EXIST if nothing is at the path,
                WRONG_EXTENSION if it lacks the source suffix
        """
        try:
            abs_path = Path(path).expanduser().resolve()
        except (OSError, RuntimeError) as e:
            raise ValidationError(
                f"could not resolve path: {e}",
                field_name="path",
                value=str(path),
                reason=ValidationReason.NOT_EXIST,
            ) from e

        if not abs_path.exists():
            raise ValidationError(
                f"file does not exist: {abs_path}",
                field_name="path",
                value=str(path),
                reason=ValidationReason.NOT_EXIST,
            )

        if abs_path.suffix != self.source_suffix:
            raise ValidationError(
                f"file is not {self.source_suffix} type: {abs_path.name}",
                field_name="path",
                value=str(path),
                reason=ValidationReason.WRONG_EXTENSION,
            )

        logger.debug(f"Validated source path: {abs_path}")
        return abs_path
