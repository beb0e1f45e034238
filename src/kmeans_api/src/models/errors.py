class ConfigurationError(ValueError):
    """Raised when run parameters make the clustering loop impossible to start."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field
