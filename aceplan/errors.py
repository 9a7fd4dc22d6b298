class AcePlanError(Exception):
    """Base class for errors raised by the storage core."""


class ReadError(AcePlanError):
    """A blob's bytes could not be read."""

    def __init__(self, name: str, cause: BaseException):
        super().__init__(f"Could not read file '{name}': {cause}")
        self.name = name


class PersistenceError(AcePlanError):
    """The key-value store rejected a write."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"Could not write '{key}': {reason}")
        self.key = key
        self.reason = reason
