# mensa/errors.py
from typing import Tuple


class MensaError(Exception):
    """Base for everything the mensa commands report back to a user.

    ``user_message`` is what we reply with; ``str(exc)`` is what goes to the log.
    """

    user_message = "Something went wrong."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.user_message)


class BadFormat(MensaError):
    user_message = "Bad position format, use a letter and a number like `B3` or `3B`."

    def __init__(self, message: str | None = None):
        super().__init__(message)
        if message:
            self.user_message = message


class OutOfBounds(MensaError):
    def __init__(self, letters: Tuple[str, str], numbers: Tuple[int, int]):
        self.letters = letters
        self.numbers = numbers
        self.user_message = (
            f"Bad position format, out of bounds: {letters[0]}-{letters[1]}, {numbers[0]}-{numbers[1]}"
        )
        super().__init__(self.user_message)


class BadDuration(MensaError):
    user_message = "Couldn't read that duration. Try something like `30m`, `2h` or `0` to delete."

    def __init__(self, message: str | None = None):
        super().__init__(message)
        if message:
            self.user_message = message


class FetchError(MensaError):
    user_message = "Couldn't load an avatar for the plan."

    def __init__(self, user_id: int, reason: str = ""):
        self.user_id = user_id
        self.reason = reason
        super().__init__(f"avatar fetch failed for {user_id}: {reason or 'unknown error'}")


class RenderError(MensaError):
    user_message = "Failed to render the mensa plan."
