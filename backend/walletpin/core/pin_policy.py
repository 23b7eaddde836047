"""PIN Policy — format rules applied before a new PIN is stored."""

from walletpin.core.errors import InvalidPinFormatError


def check_pin_format(pin: str, min_length: int = 4, max_length: int = 8) -> None:
    """Raise InvalidPinFormatError unless pin is min..max ASCII digits."""
    if not isinstance(pin, str) or not pin:
        raise InvalidPinFormatError("PIN is empty")
    # str.isdigit() accepts superscripts and other Unicode digits
    if not (pin.isascii() and pin.isdigit()):
        raise InvalidPinFormatError("PIN must contain only digits 0-9")
    if not min_length <= len(pin) <= max_length:
        raise InvalidPinFormatError(
            f"PIN must be {min_length}-{max_length} digits long",
        )
