"""
Single place for default game/setup configuration.
Change DEFAULT_SETUP_ID to switch which setup is used when creating a new game (when no setup_id is provided).
MICROCIV_SETUP_ID and MICROCIV_CORS_ORIGINS override the defaults from the environment.
"""

import os

# Setup id from data/setups/<id>/ (e.g. "classic"). This is the default for new games.
DEFAULT_SETUP_ID = os.environ.get("MICROCIV_SETUP_ID", "classic")

# Comma-separated list of allowed frontend origins
CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get(
        "MICROCIV_CORS_ORIGINS",
        "http://localhost:5173,http://localhost:5174,http://localhost:3000",
    ).split(",")
    if origin.strip()
]
