"""Custom exceptions for pkgsentinel."""


class PkgSentinelError(Exception):
    """Base exception for all pkgsentinel errors."""


class ManifestParseError(PkgSentinelError):
    """Raised when a package.json cannot be read or is not a JSON object."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: could not parse file ({reason})")


class RegistryError(PkgSentinelError):
    """Raised when the package registry lookup fails."""


class ProcessTimeoutError(PkgSentinelError):
    """Raised when an external install/test process exceeds its timeout."""

    def __init__(self, command: str, timeout: float):
        self.command = command
        self.timeout = timeout
        super().__init__(f"{command} timed out after {timeout:g}s")


class NoManifestError(PkgSentinelError):
    """Raised when no package.json can be discovered at all."""
