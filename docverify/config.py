# docverify/config.py
from dotenv import load_dotenv
import os

load_dotenv()

# OCR engine
TESSERACT_CMD = os.getenv("TESSERACT_CMD")
OCR_LANGUAGE = os.getenv("OCR_LANGUAGE", "eng")
OCR_RATE = int(os.getenv("OCR_RATE", "4"))
MIN_TEXT_LENGTH = int(os.getenv("MIN_TEXT_LENGTH", "5"))
OCR_MAX_WIDTH = 1800

# PDF input
PDF_TEXT_MIN_LENGTH = int(os.getenv("PDF_TEXT_MIN_LENGTH", "50"))
PDF_RENDER_SCALE = 2.0

# Block matching
BLOCK_ACCEPT_THRESHOLD = float(os.getenv("BLOCK_ACCEPT_THRESHOLD", "0.70"))
EXACT_MATCH_TYPE_THRESHOLD = 0.95
FUZZY_MATCH_TYPE_THRESHOLD = 0.8
SIMILARITY_WEIGHTS = {
    "exact": 0.40,
    "substring": 0.25,
    "levenshtein": 0.15,
    "jaro_winkler": 0.15,
    "phonetic": 0.05,
}

# Address decision
NGRAM_WINDOW = int(os.getenv("NGRAM_WINDOW", "5"))
STRONG_BLOCK_COUNT = int(os.getenv("STRONG_BLOCK_COUNT", "5"))
MODERATE_BLOCK_COUNT = int(os.getenv("MODERATE_BLOCK_COUNT", "3"))
STRONG_BLOCK_FLOOR = float(os.getenv("STRONG_BLOCK_FLOOR", "85"))
MODERATE_BLOCK_FLOOR = float(os.getenv("MODERATE_BLOCK_FLOOR", "75"))
FORCE_FULL_BLOCK_SCORE = float(os.getenv("FORCE_FULL_BLOCK_SCORE", "0.75"))
STRONG_FUZZY_THRESHOLD = float(os.getenv("STRONG_FUZZY_THRESHOLD", "0.85"))
FUZZY_THRESHOLD = float(os.getenv("FUZZY_THRESHOLD", "0.75"))

# Name matching and blending
NAME_MATCH_THRESHOLD = float(os.getenv("NAME_MATCH_THRESHOLD", "0.6"))
ADDRESS_WEIGHT = float(os.getenv("ADDRESS_WEIGHT", "0.7"))
NAME_WEIGHT = float(os.getenv("NAME_WEIGHT", "0.3"))

# Recommendations
LOW_MATCH_SCORE = 70
LOW_OCR_CONFIDENCE = 80

# Runtime parameters
BATCH_SIZE = int(os.getenv("BATCH_SIZE", "15"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# File names
INPUT_CSV = os.getenv("INPUT_CSV", "documents.csv")
OUTPUT_CSV = os.getenv("OUTPUT_CSV", "verification_results.csv")
