"""
constants.py — Game configuration shared by the board service and the frontend.

Grid geometry and growth duration are fixed at build time; only the
storage location can be moved through the environment.
"""

import os

ROWS = 4
COLS = 5
GROWTH_TIME_MS = 5000  # Watered plant → harvestable (5 seconds)

PORT = 3000

STORAGE_KEY = 'gameBoard'
STORAGE_DIR_NAME = 'farming-game-data'


def get_data_dir() -> str:
    """Get the storage directory from environment or default."""
    default_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), STORAGE_DIR_NAME)
    return os.environ.get('FARM_DATA_DIR', default_dir)
