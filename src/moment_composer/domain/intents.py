"""Utterance intent categories."""

from enum import StrEnum


class Intent(StrEnum):
    """Category an utterance is classified into."""

    PHOTO = "photo"
    SHOPPING = "shopping"
    CALENDAR = "calendar"
    EMAIL = "email"
    NONE = "none"
