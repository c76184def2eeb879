"""
Enumerations shared by models and schemas.

Both enums subclass str so they serialize to their plain names in JSON
and compare equal to the raw strings stored in the database.
"""

import enum


class BookStatus(str, enum.Enum):
    """
    Lifecycle state of a book in the personal library.

    WISHLIST → READING → FINISHED is the normal path driven by progress
    updates. ABANDONED and ON_HOLD are only ever set by hand.
    """

    WISHLIST = "WISHLIST"
    READING = "READING"
    FINISHED = "FINISHED"
    ABANDONED = "ABANDONED"
    ON_HOLD = "ON_HOLD"

    @property
    def display_name(self) -> str:
        return _STATUS_DISPLAY_NAMES[self]


_STATUS_DISPLAY_NAMES = {
    BookStatus.WISHLIST: "Wishlist",
    BookStatus.READING: "Reading",
    BookStatus.FINISHED: "Finished",
    BookStatus.ABANDONED: "Abandoned",
    BookStatus.ON_HOLD: "On hold",
}


class ReadingMood(str, enum.Enum):
    """How the reader felt during a reading session."""

    EXCITED = "EXCITED"
    RELAXED = "RELAXED"
    FOCUSED = "FOCUSED"
    TIRED = "TIRED"
    DISTRACTED = "DISTRACTED"

    @property
    def display_name(self) -> str:
        return _MOOD_DISPLAY[self][0]

    @property
    def emoji(self) -> str:
        return _MOOD_DISPLAY[self][1]

    @property
    def is_positive(self) -> bool:
        return self in (ReadingMood.EXCITED, ReadingMood.RELAXED, ReadingMood.FOCUSED)

    @property
    def is_negative(self) -> bool:
        return self in (ReadingMood.TIRED, ReadingMood.DISTRACTED)


_MOOD_DISPLAY = {
    ReadingMood.EXCITED: ("Excited", "🤩"),
    ReadingMood.RELAXED: ("Relaxed", "😌"),
    ReadingMood.FOCUSED: ("Focused", "🧠"),
    ReadingMood.TIRED: ("Tired", "😴"),
    ReadingMood.DISTRACTED: ("Distracted", "😵‍💫"),
}
