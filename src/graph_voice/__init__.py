"""Voice and text assistant for mail, chat and calendar with confirmed actions."""

__version__ = "0.1.0"
