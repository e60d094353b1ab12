"""Custom exceptions for replay parsing errors."""


class MalformedMessageError(Exception):
    """Exception raised when a known protocol line cannot be decoded.

    The MessageParser raises this when a line carries a recognized tag but
    its fields do not have the expected shape. The ReplayInterpreter catches
    it, records an anomaly for the line and moves on to the next one.

    Attributes:
        raw_message: The offending protocol line
        reason: Why the fields could not be extracted
    """

    def __init__(self, raw_message: str, reason: str):
        """Initialize the MalformedMessageError.

        Args:
            raw_message: The protocol line that failed to parse
            reason: Description of the extraction failure
        """
        self.raw_message = raw_message
        self.reason = reason
        super().__init__(f"Malformed message {raw_message!r}: {reason}")


class ReplayParseError(Exception):
    """Exception raised when a whole replay log cannot be interpreted.

    Attributes:
        reason: Why the log was rejected
    """

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Cannot parse replay: {reason}")


class ReplayFetchError(Exception):
    """Exception raised when a replay log cannot be retrieved.

    Attributes:
        url: The replay URL that was requested
        reason: Transport or server error description
    """

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Could not fetch {url}: {reason}")
