"""
Difficulty levels and the difficulty-to-depth policy.

The host application (board UI, UCI GUI, web client) only knows difficulty
names. The search only knows depths. This module is the single place where
one is turned into the other, using the table in engine.constants.
"""

from enum import Enum

from engine.constants import DIFFICULTY_DEPTHS


class UnknownDifficultyError(ValueError):
    """Raised when a difficulty name does not match any known level."""


class Difficulty(str, Enum):
    """Playing strength of the automated player, weakest first."""

    BEGINNER = "Beginner"
    EASY = "Easy"
    HARD = "Hard"
    MASTER = "Master"

    @property
    def depth(self) -> int:
        """Search depth in plies; 0 means a random legal move."""
        return DIFFICULTY_DEPTHS[self.value]

    @classmethod
    def parse(cls, value: "Difficulty | str") -> "Difficulty":
        """
        Convert a difficulty name to a Difficulty member.

        Names are matched case-insensitively so that "master", "Master" and
        "MASTER" all resolve to Difficulty.MASTER.

        Args:
            value: A Difficulty member or its name.

        Returns:
            The matching Difficulty member.

        Raises:
            UnknownDifficultyError: The name matches no level. There is no
                fallback depth; callers must pass a valid level.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            wanted = value.strip().lower()
            for member in cls:
                if member.value.lower() == wanted:
                    return member
        choices = ", ".join(member.value for member in cls)
        raise UnknownDifficultyError(
            f"unknown difficulty {value!r} (expected one of: {choices})"
        )


def depth_for(difficulty: "Difficulty | str") -> int:
    """Return the search depth for a difficulty member or name."""
    return Difficulty.parse(difficulty).depth
