class DefenseError(Exception):
    """Base class for engine errors."""


class CatalogFetchError(DefenseError):
    """Remote asteroid catalog could not be fetched or parsed."""


class ScenarioError(DefenseError):
    """Transition not allowed from the current scenario phase."""
