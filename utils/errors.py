class EngineError(Exception):
    """Base class for attendance engine errors."""


class TimeParseError(EngineError, ValueError):
    def __init__(self, text):
        self.text = text
        super().__init__(f"Unparseable time value: {text!r}")


class UnknownTimezoneError(EngineError, ValueError):
    def __init__(self, name):
        self.name = name
        super().__init__(f"Unknown timezone: {name!r}")


class ConfigurationError(EngineError):
    pass
