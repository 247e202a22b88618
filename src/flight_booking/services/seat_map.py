"""
Seat labelling for a flight cabin: rows numbered from 1, letters per row.
"""
import string
from typing import Iterable, List, Set

from flight_booking.core.config import settings


def seat_labels(total_seats: int, seats_per_row: int = None) -> List[str]:
    """All seat labels of a cabin in boarding order: 1A, 1B, ... 2A, ..."""
    seats_per_row = seats_per_row or settings.SEATS_PER_ROW
    letters = string.ascii_uppercase[:seats_per_row]
    labels = []
    row = 1
    while len(labels) < total_seats:
        for letter in letters:
            if len(labels) == total_seats:
                break
            labels.append(f"{row}{letter}")
        row += 1
    return labels


def normalize_seat(label: str) -> str:
    return label.strip().upper()


def invalid_seats(requested: Iterable[str], total_seats: int) -> Set[str]:
    """Requested labels that don't exist on this cabin"""
    valid = set(seat_labels(total_seats))
    return {seat for seat in requested if seat not in valid}


def pick_free_seats(total_seats: int, held: Set[str], count: int) -> List[str]:
    """First `count` seats not already held, or fewer if the cabin is full"""
    free = [label for label in seat_labels(total_seats) if label not in held]
    return free[:count]
