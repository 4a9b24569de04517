"""Configuration management for the kitchen core."""
import logging
import os
from pathlib import Path
from typing import Final

from dotenv import load_dotenv

# Load environment variables from .env file if it exists
env_path = Path(__file__).parent.parent / '.env'
if env_path.exists():
    load_dotenv(env_path)

# Logging
LOG_LEVEL: Final[str] = os.getenv('LOG_LEVEL', 'INFO').upper()

# Persistence (JsonDocumentStore)
BASE_DIR: Final[Path] = Path(__file__).parent.parent
DATA_DIR: Final[Path] = Path(os.getenv('KITCHEN_DATA_DIR', str(BASE_DIR / 'data')))
DATA_FILE: Final[Path] = Path(os.getenv('KITCHEN_DATA_FILE', str(DATA_DIR / 'kitchen.json')))

# Week plan defaults
WORKING_DAYS: Final[int] = int(os.getenv('WORKING_DAYS', '5'))
DEFAULT_SERVINGS: Final[int] = int(os.getenv('DEFAULT_SERVINGS', '4'))
DEFAULT_COOK_TIMING: Final[str] = os.getenv('DEFAULT_COOK_TIMING', 'previous_day')
WEEK_PLAN_CREATE_ATTEMPTS: Final[int] = max(1, int(os.getenv('WEEK_PLAN_CREATE_ATTEMPTS', '1')))

# Default ("uncategorized") category
DEFAULT_CATEGORY_NAME: Final[str] = os.getenv('DEFAULT_CATEGORY_NAME', 'Otros')
DEFAULT_CATEGORY_SLUG: Final[str] = os.getenv('DEFAULT_CATEGORY_SLUG', 'otros')
DEFAULT_CATEGORY_COLOR_BG: Final[str] = os.getenv('DEFAULT_CATEGORY_COLOR_BG', '#EEF2FF')
DEFAULT_CATEGORY_COLOR_TEXT: Final[str] = os.getenv('DEFAULT_CATEGORY_COLOR_TEXT', '#3730A3')

# Colors used when a new category is created without explicit colors
NEW_CATEGORY_COLOR_BG: Final[str] = '#eef2ff'
NEW_CATEGORY_COLOR_TEXT: Final[str] = '#4338ca'

# Ingredient search results returned when no limit is given
INGREDIENT_SEARCH_LIMIT: Final[int] = int(os.getenv('INGREDIENT_SEARCH_LIMIT', '15'))

# Activity log buffer size
MAX_EVENTS: Final[int] = int(os.getenv('MAX_EVENTS', '300'))


def configure_logging(level: str = LOG_LEVEL) -> None:
    """Basic logging setup for scripts run from the command line."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
