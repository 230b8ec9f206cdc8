"""Enumerations shared by binding configuration and calendar events.

Values equal the canonical member names so that the comma-joined strings
stored for exclusion rules stay human readable ("Red,Blue").
"""

from enum import Enum


class TitleHandling(str, Enum):
    """How the copy's subject is derived from the source subject."""

    CLONE = "Clone"
    RENAME = "Rename"
    HIDE = "Hide"


class ReminderHandling(str, Enum):
    """How reminders are carried over to the copy."""

    COPY = "Copy"
    NONE = "None"
    CUSTOM = "Custom"


class RsvpResponse(str, Enum):
    """Response of the calendar owner to a meeting invitation."""

    NONE = "None"
    YES = "Yes"
    MAYBE = "Maybe"
    NO = "No"


class EventStatus(str, Enum):
    """Free/busy status ("show as") of an event."""

    FREE = "Free"
    BUSY = "Busy"
    TENTATIVE = "Tentative"
    OUT_OF_OFFICE = "OutOfOffice"
    WORKING_ELSEWHERE = "WorkingElsewhere"


class EventColor(str, Enum):
    """Outlook category colour presets (preset0..preset24), plus no colour."""

    NONE = "None"
    RED = "Red"
    ORANGE = "Orange"
    BROWN = "Brown"
    YELLOW = "Yellow"
    GREEN = "Green"
    TEAL = "Teal"
    OLIVE = "Olive"
    BLUE = "Blue"
    PURPLE = "Purple"
    CRANBERRY = "Cranberry"
    STEEL = "Steel"
    DARK_STEEL = "DarkSteel"
    GRAY = "Gray"
    DARK_GRAY = "DarkGray"
    BLACK = "Black"
    DARK_RED = "DarkRed"
    DARK_ORANGE = "DarkOrange"
    DARK_BROWN = "DarkBrown"
    DARK_YELLOW = "DarkYellow"
    DARK_GREEN = "DarkGreen"
    DARK_TEAL = "DarkTeal"
    DARK_OLIVE = "DarkOlive"
    DARK_BLUE = "DarkBlue"
    DARK_PURPLE = "DarkPurple"
    DARK_CRANBERRY = "DarkCranberry"
