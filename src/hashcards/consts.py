VERSION = "0.3.0"

DECK_SUFFIX = ".md"
DEFAULT_DB_NAME = "hashcards.json"
