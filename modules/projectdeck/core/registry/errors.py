"""Registry error taxonomy.

Lookup misses are not errors: they surface as ``None`` returns.
"""


class RegistryError(Exception):
    """Base class for registry failures the caller must report."""


class NothingToMergeError(RegistryError):
    """No discovery source produced candidates and no scan roots are configured."""


class PersistenceError(RegistryError):
    """Reading or writing the registry file failed."""

    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = path


class DiscoveryError(RegistryError):
    """A discovery source could not be read (raised only in fail-hard mode)."""

    def __init__(self, message: str, source: str = ""):
        super().__init__(message)
        self.source = source
