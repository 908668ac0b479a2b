"""Game code generation."""

import secrets

from shared.dal.models import GAME_CODE_LENGTH
from shared.validators import GAME_CODE_ALPHABET


def generate_game_code(length: int = GAME_CODE_LENGTH) -> str:
    """Return a random join code drawn from A-Z0-9."""
    return "".join(secrets.choice(GAME_CODE_ALPHABET) for _ in range(length))
