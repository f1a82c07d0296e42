# mensa/config.py
from datetime import timedelta

# Where we persist small bot settings
SETTINGS_PATH = "data/settings.json"

# Background plan art; see mensa/plan.py for the fallback when it's missing
PLAN_IMAGE_PATH = "assets/mensa_plan.png"
PLAN_FILENAME = "mensa_plan.png"

# Grid bounds as shown to users (letters = columns, numbers = rows)
MIN_LETTER = "A"
MAX_LETTER = "J"
MIN_NUMBER = 1
MAX_NUMBER = 10

COLUMNS = ord(MAX_LETTER) - ord(MIN_LETTER) + 1
ROWS = MAX_NUMBER - MIN_NUMBER + 1

# Pixel geometry of the plan image
X_OFFSET = 40
Y_OFFSET = 12
CELL_SIZE = 53

# Marker lifetime when the user gives no duration
DEFAULT_DURATION = timedelta(hours=1)

# Avatar thumbnails are requested at this size from Discord
AVATAR_SIZE = 64

# Default settings used on first run
DEFAULT_SETTINGS = {
    "plan_image": None,          # override PLAN_IMAGE_PATH
    "log_level": "INFO",
    "command_prefix": "!",
    "max_duration_hours": None,   # e.g. 24 to cap marker lifetime
}
