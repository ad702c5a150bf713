"""Application-wide constants.

This module centralizes all magic numbers and configuration constants
to ensure a single source of truth and easier maintenance.

Constants are organized by category: fetching, probe queries, search
input scoring, and card discovery.
"""

# =============================================================================
# Fetch Configuration
# =============================================================================

# Default timeout for page fetches (seconds)
DEFAULT_FETCH_TIMEOUT_SECONDS = 10.0

# Browser-like headers sent with every fetch
DEFAULT_REQUEST_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36"
    ),
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,"
        "image/avif,image/webp,*/*;q=0.8"
    ),
    "Accept-Language": "en-US,en;q=0.9",
    "Upgrade-Insecure-Requests": "1",
}

# =============================================================================
# Probe Queries
# =============================================================================

# Generic word that returns results on most English-language sites
DEFAULT_COMMON_QUERY = "the"

# Nonsense token that should return no results anywhere
DEFAULT_NONSENSE_QUERY = "asdfghjklqwerty12345"

# Category-specific words tried when the common query fails
DEFAULT_FALLBACK_QUERIES = {
    "Books": "murder",
    "Movies": "love",
}

# Substrings that exclude a site link from discovery
DEFAULT_SKIP_KEYWORDS = (
    "wiki",
    "github",
    "FOSS",
    "guide",
    "CSE",
    "reddit",
    "t.me",
    "mozilla",
    "greasyfork",
    "discord",
    "telegram",
    "vinegar",
    "launcher",
    "cli",
    "tui",
    "manager",
    "wine",
    "frontend",
)

# =============================================================================
# Search Form Detection
# =============================================================================

# Vocabulary of login, registration, subscription and contact forms
NON_SEARCH_FORM_PATTERN = (
    r"login|log in|sign ?in|username|password|register|sign ?up|subscribe"
    r"|newsletter|contact|comment|forgot|e-mail|email"
)

# Inputs that can carry a free-text query
SEARCH_INPUT_SELECTOR = "input[type='search'], input[type='text']"

# Elements whose text describes what a form is for
FORM_LABEL_SELECTOR = "h1, h2, h3, button, a[role='button'], input[type='submit']"

# Buttons considered when looking for a search trigger next to the input
SEARCH_BUTTON_SELECTOR = "button, a[role='button']"

# Icon classes used on search buttons
SEARCH_ICON_CLASS_PATTERN = r"search|magnify|loupe"

# Placeholder swapped for "%s" after URL encoding
QUERY_PLACEHOLDER = "QUERY_PLACEHOLDER"

# =============================================================================
# Search Input Scoring
# =============================================================================

SCORE_TYPE_SEARCH = 100
SCORE_TYPE_OTHER = 10
SCORE_ROLE_SEARCH = 75
SCORE_IN_HEADER = 50
SCORE_IN_NAV = 40
SCORE_SEARCH_ATTRIBUTE = 35
SCORE_SEARCH_PLACEHOLDER = 20
SCORE_SEARCH_BUTTON = 50
PENALTY_IN_FOOTER = -200
PENALTY_IN_SIDEBAR = -100
SCORE_CERTAINTY_BONUS = 50

# Positive signals needed for the certainty bonus
CERTAINTY_SIGNAL_COUNT = 3

# Attributes checked for search-like values
SEARCH_ATTRIBUTES = ("id", "name", "aria-label", "data-testid")

# Attribute values that name a query parameter outright
SEARCH_ATTRIBUTE_EXACT_VALUES = frozenset({"q", "s", "query"})

# Top two viable scores closer than this are reported as ambiguous
AMBIGUITY_SCORE_GAP = 20

# =============================================================================
# Card Discovery
# =============================================================================

# Weight of each repetition in frequency analysis (added to parent depth)
FREQUENCY_REPEAT_WEIGHT = 5

# Minimum element children for a differential candidate container
MIN_CONTAINER_CHILDREN = 2

# =============================================================================
# Site Search
# =============================================================================

# Minimum fuzzy ranking score for a card link to be returned as a result
SEARCH_RESULT_MIN_SCORE = 79

# Deducted when a query word is missing from the candidate title
MISSING_QUERY_WORD_PENALTY = 1
