"""sprintboard -- planning poker and retrospective boards."""

__version__ = "0.3.0"
