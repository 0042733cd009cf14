"""
Exceptions and warnings raised while decoding RADOLAN composites.

Every hard failure derives from `DecodeError`, itself a `ValueError`, so callers
can catch the whole family at once. Unresolved physical units are not fatal and
are reported through `UnknownUnitWarning` instead.
"""


class DecodeError(ValueError):
    """Base class for all composite decoding errors."""


# --- Header errors ---


class HeaderTooShortError(DecodeError):
    """Header is missing its terminator or is too short to be plausible."""


class BadCaptureTimeError(DecodeError):
    """Fixed-position capture time does not match the date pattern."""


class BadDataLengthError(DecodeError):
    """The `BY` field is missing or not an integer."""


class BadForecastOffsetError(DecodeError):
    """The `VV` field is not an integer."""


class BadIntervalError(DecodeError):
    """The `INT` field is not an integer."""


class BadDimensionsError(DecodeError):
    """A dimension field is present but cannot be parsed."""


class MissingDimensionsError(DecodeError):
    """No dimension field in the header and no catalog entry for the product."""


class BadPrecisionError(DecodeError):
    """The precision exponent is not an integer."""


class BadLevelFormatError(DecodeError):
    """The level table does not match its declared count or holds a bad value."""


class BadFormatVersionError(DecodeError):
    """The `VS` field is not an integer."""


# --- Payload errors ---


class InvalidOffsetError(DecodeError):
    """Run-length offset byte below 16."""


class DestinationOverflowError(DecodeError):
    """Run-length run would write past the end of the line."""


class TruncatedPayloadError(DecodeError):
    """The payload ended before all lines were read."""


class UnknownEncodingError(DecodeError):
    """The payload encoding could not be identified from the header."""


class UnknownUnitWarning(UserWarning):
    """The product has no catalog unit; values may be misinterpreted."""
