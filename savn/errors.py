class SavnError(Exception):
    """Base class for savn-specific errors."""


# Decoding
class InvalidEncoding(SavnError, ValueError):
    """Path is not valid UTF-8, the kind tag is unknown, or an entry cannot be framed."""


class TruncatedStream(SavnError, EOFError):
    """The stream ended before the current entry was complete."""


# Host capabilities
class UnsupportedOperation(SavnError):
    pass
