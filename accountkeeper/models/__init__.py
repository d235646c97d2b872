"""Data models for accountkeeper."""

from accountkeeper.models.user import User, UserRecord
from accountkeeper.models.inputs import LoginInput, RegistrationInput, UpdateInput, parse_input

__all__ = [
    "User",
    "UserRecord",
    "RegistrationInput",
    "UpdateInput",
    "LoginInput",
    "parse_input",
]
