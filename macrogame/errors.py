"""Exception types raised by the macrogame engine."""


class MacrogameError(Exception):
    """Base class for engine errors."""


class SessionConfigError(MacrogameError):
    """Required session inputs are missing or invalid; the session cannot start."""


class MinigameNotFoundError(MacrogameError):
    """No minigame plugin is registered under the requested id."""

    def __init__(self, game_id: str):
        super().__init__(f"No minigame registered with id '{game_id}'")
        self.game_id = game_id
