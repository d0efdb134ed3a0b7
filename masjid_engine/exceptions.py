"""
Engine error taxonomy.

Configuration errors are fatal to the call that raised them and are surfaced
immediately. Transient I/O failures never raise past the sources that hit
them; they are converted to an error message on the published state.
"""


class ConfigurationError(ValueError):
    """Raised for invalid calculation methods, coordinates, or timezones"""
    pass


class DateFormatError(ConfigurationError):
    """Raised when date format is invalid"""
    pass


class SourceError(RuntimeError):
    """Raised by an external source when its payload cannot be used"""
    pass
