"""Exception hierarchy for the planning engine."""


class LiftplanError(Exception):
    """Base class for all liftplan errors."""


class ConfigurationError(LiftplanError, ValueError):
    """Inputs that cannot produce any session (empty catalog, no candidates)."""


class CatalogValidationError(ConfigurationError):
    """Reference data outside the closed vocabularies, raised by the loader."""

    def __init__(self, message: str, entry_id: str = None, field: str = None):
        super().__init__(message)
        self.entry_id = entry_id
        self.field = field
