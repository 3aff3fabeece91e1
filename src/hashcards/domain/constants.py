"""Centralized constants for hashcards.

All scheduling weights, interval bounds and RNG parameters live here so every
layer imports from a single source of truth.
"""

# ---------- FSRS ----------
FSRS_WEIGHTS = (
    0.40255, 1.18385, 3.173, 15.69105, 7.1949, 0.5345, 1.4604, 0.0046, 1.54575, 0.1192,
    1.01925, 1.9395, 0.11, 0.29605, 2.2698, 0.2315, 2.9898, 0.51655, 0.6621,
)
FSRS_DECAY = -0.5
FSRS_FACTOR = 19.0 / 81.0
MIN_DIFFICULTY = 1.0
MAX_DIFFICULTY = 10.0

# ---------- Scheduling ----------
TARGET_RECALL = 0.9
MIN_INTERVAL_DAYS = 1
MAX_INTERVAL_DAYS = 256

# ---------- Serialization ----------
DATE_FORMAT = "%Y-%m-%d"
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%f"

# ---------- Shuffle RNG (64-bit LCG) ----------
LCG_MULTIPLIER = 6364136223846793005
LCG_INCREMENT = 1442695040888963407
U64_MASK = (1 << 64) - 1

# ---------- Parser ----------
QUESTION_TAG = "Q:"
ANSWER_TAG = "A:"
CLOZE_TAG = "C:"
SEPARATOR = "---"
