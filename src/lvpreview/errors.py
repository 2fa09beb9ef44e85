"""Error taxonomy shared across lvpreview subpackages.

- ConfigurationError: invalid or missing settings, detected before any
  toolchain invocation.
- BuildFailure: a stage produced compiler errors or no artifacts at all.
- CacheCorruption: a persisted cache index could not be read. Never fatal.

File-system failures use the built-in OSError family.
"""


class LvPreviewError(Exception):
    """Base exception for lvpreview errors."""
    pass


class ConfigurationError(LvPreviewError):
    """Raised when preview settings or project configuration are invalid."""
    pass


class BuildFailure(LvPreviewError):
    """Raised when a build stage cannot produce usable artifacts."""
    pass


class CacheCorruption(LvPreviewError):
    """Raised when a persisted cache index is unreadable or malformed."""
    pass
