"""Error types shared by the loader and the report pipeline."""


class ValidationError(ValueError):
    """Malformed input field or invalid report configuration."""
