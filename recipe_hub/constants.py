# constants.py
# Bounds and character sets shared by the server-side validators and the API client.
# Change a limit here and both sides pick it up.

import re

# --- Images ---
IMAGE_URL_PATTERN = re.compile(r"\.(jpg|jpeg|png|webp)(\?.*)?\Z", re.IGNORECASE)

# --- Recipe title ---
TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 200
TITLE_PATTERN = re.compile(r"^[a-zA-Z0-9\s\-'().,&!]+\Z")

# --- Ingredient name ---
INGREDIENT_NAME_MIN_LENGTH = 1
INGREDIENT_NAME_MAX_LENGTH = 100
INGREDIENT_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9\s\-'().,&]+\Z")

# --- Times (minutes) ---
COOK_TIME_MIN = 1
COOK_TIME_MAX = 960
PREP_TIME_MIN = 1
PREP_TIME_MAX = 480
STEP_TIME_MIN = 0
STEP_TIME_MAX = 480

# --- Servings ---
SERVINGS_MIN = 1
SERVINGS_MAX = 50

# --- Ingredient quantity ---
QUANTITY_MAX = 10000

# --- Nutrition (per serving); calories in kcal, the rest in grams ---
NUTRIENT_LIMITS = {
    "calories": 5000,
    "protein": 500,
    "carbs": 1000,
    "fat": 500,
    "fiber": 200,
}
CALORIES_PER_UNIT_MAX = 10000

# --- Tags ---
TAGS_MAX_COUNT = 20
TAG_MIN_LENGTH = 1
TAG_MAX_LENGTH = 50
TAG_PATTERN = re.compile(r"^[a-zA-Z0-9\s-]+\Z")

# --- Free text limits ---
DESCRIPTION_MAX_LENGTH = 1000
INSTRUCTIONS_MAX_LENGTH = 5000
NOTES_MAX_LENGTH = 1000
UNIT_MAX_LENGTH = 50
PREPARATION_MAX_LENGTH = 200
STEP_TITLE_MAX_LENGTH = 200
STEP_INSTRUCTIONS_MAX_LENGTH = 1000
STEP_TIPS_MAX_LENGTH = 500
STEP_TEMPERATURE_MAX_LENGTH = 20
EQUIPMENT_ITEM_MAX_LENGTH = 100
BIO_MAX_LENGTH = 500
NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50

# --- Passwords: at least one letter, one digit and one special character ---
PASSWORD_MIN_LENGTH = 8
PASSWORD_PATTERN = re.compile(r"^(?=.*[a-zA-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]")

# --- Ratings ---
RATING_MIN = 1
RATING_MAX = 5
RATING_COMMENT_MAX_LENGTH = 1000
RECENT_RATINGS_COUNT = 5
