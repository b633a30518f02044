"""
Error hierarchy for BIM.

Library code raises these; only the CLI turns them into a process exit status.
"""


class BimError(Exception):
    """Base exception for all BIM errors."""


class ConfigurationError(BimError):
    """Configuration file missing, malformed or referencing unknown entities."""


class BuildError(BimError):
    """The build script failed or could not be started for a version."""

    def __init__(self, version: str, cause: str):
        self.version = version
        self.cause = cause
        super().__init__(f"Build of version {version} has failed: {cause}")


class ImageStoreError(BimError):
    """A container runtime operation failed."""


class TaggingError(ImageStoreError):
    """An alias tag could not be applied."""


class TagTargetNotFoundError(TaggingError):
    """No image matches the target of a tag."""


class AmbiguousTagTargetError(TaggingError):
    """More than one image matches the target of a tag."""
