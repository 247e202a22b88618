"""
PNR (passenger reference) generation
"""
import secrets
import string
from typing import Awaitable, Callable

from flight_booking.core.config import settings
from flight_booking.services.errors import FlightBookingError

PNR_ALPHABET = string.ascii_uppercase + string.digits
PNR_LENGTH = 6


def generate_pnr() -> str:
    """Random 6-character code drawn from [A-Z0-9]"""
    return "".join(secrets.choice(PNR_ALPHABET) for _ in range(PNR_LENGTH))


async def generate_unique_pnr(
    is_taken: Callable[[str], Awaitable[bool]],
    max_attempts: int = None,
) -> str:
    """
    Generate a PNR that `is_taken` reports as free.

    Codes are regenerated on collision; a code is never returned without
    passing the check, so uniqueness doesn't rest on probability alone.
    """
    max_attempts = max_attempts or settings.PNR_MAX_ATTEMPTS
    for _ in range(max_attempts):
        code = generate_pnr()
        if not await is_taken(code):
            return code
    raise FlightBookingError(
        f"Could not allocate a booking reference after {max_attempts} attempts. Please retry."
    )
