"""Exceptions raised by interfaceheight."""


class ConfigurationError(ValueError):
    """Raised when the setup cannot define an interface height.

    Covers an unresolvable height direction, an empty or malformed list of
    query locations, unknown interpolation schemes and missing fields.
    """
