"""
Configuration settings for merge batcher.

Settings are passed explicitly to the batcher at construction; nothing reads
them from a global. ``BatcherSettings.from_env`` builds an instance from
environment variables for command-line use.
"""
import logging
import os
from dataclasses import dataclass

from merge_batcher.renamer import DEFAULT_PARAMETER_PREFIX

logger = logging.getLogger(__name__)

# Default number of statements merged before a flush
DEFAULT_BATCH_SIZE = 20

ENV_BATCH_SIZE = "MERGE_BATCHER_BATCH_SIZE"
ENV_PARAMETER_PREFIX = "MERGE_BATCHER_PARAMETER_PREFIX"
ENV_DRY_RUN = "MERGE_BATCHER_DRY_RUN"


def validate_batch_size(batch_size: int) -> int:
    if isinstance(batch_size, bool) or not isinstance(batch_size, int) or batch_size < 1:
        raise ValueError(f"Batch size must be a positive integer, got {batch_size!r}")
    return batch_size


@dataclass
class BatcherSettings:
    """
    Settings for a MergeBatcher.

    Attributes:
        batch_size: Number of merged statements that triggers a flush
        parameter_prefix: Prefix of generated parameter names
        dry_run: Collect merged statements instead of executing them
    """
    batch_size: int = DEFAULT_BATCH_SIZE
    parameter_prefix: str = DEFAULT_PARAMETER_PREFIX
    dry_run: bool = False

    def __post_init__(self) -> None:
        validate_batch_size(self.batch_size)
        if not self.parameter_prefix.isidentifier():
            raise ValueError(f"Parameter prefix must be an identifier, got {self.parameter_prefix!r}")

    @classmethod
    def from_env(cls, environ=None) -> "BatcherSettings":
        """
        Build settings from environment variables, falling back to defaults.

        Args:
            environ: Mapping to read instead of ``os.environ``

        Returns:
            BatcherSettings instance
        """
        environ = os.environ if environ is None else environ

        batch_size = environ.get(ENV_BATCH_SIZE)
        try:
            batch_size = int(batch_size) if batch_size else DEFAULT_BATCH_SIZE
        except ValueError:
            raise ValueError(f"{ENV_BATCH_SIZE} must be an integer, got {batch_size!r}")

        settings = cls(
            batch_size=batch_size,
            parameter_prefix=environ.get(ENV_PARAMETER_PREFIX) or DEFAULT_PARAMETER_PREFIX,
            dry_run=environ.get(ENV_DRY_RUN, "").lower() in ("1", "true", "yes"),
        )
        logger.debug(f"Loaded settings from environment: {settings}")
        return settings
