"""
State models for the NoClouds bot.
"""

from enum import Enum

from ..errors import StateIOError


class NotificationState(Enum):
    """
    Kind of the last alert sent to the chat.

    Persisted as a single ASCII byte:
        BAD: "0", last alert was about bad weather (or none was sent yet)
        GOOD: "1", last alert announced a good weather window
    """
    BAD = "0"
    GOOD = "1"

    @property
    def is_good(self) -> bool:
        return self is NotificationState.GOOD

    @classmethod
    def from_bool(cls, good: bool) -> "NotificationState":
        return cls.GOOD if good else cls.BAD

    @classmethod
    def decode(cls, raw: str) -> "NotificationState":
        """
        Parse the persisted value.

        Raises:
            StateIOError: If the value is neither "0" nor "1"
        """
        try:
            return cls(raw.strip())
        except ValueError:
            raise StateIOError(f"Unexpected state value {raw!r}") from None
