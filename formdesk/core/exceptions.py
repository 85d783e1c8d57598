class FormDeskError(Exception):
    """Base exception for FormDesk."""

    pass


class CatalogConfigError(FormDeskError):
    """Raised when package catalog overrides are malformed."""

    def __init__(self, tier: str, key: str, reason: str):
        self.tier = tier
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid package catalog entry '{tier}.{key}': {reason}")
