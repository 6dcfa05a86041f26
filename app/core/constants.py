"""
Core constants used across the application. Keep these simple and documented.
"""

# Extra items requested per refresh to absorb deduplication loss
OVERFETCH_MARGIN: int = 20

# Hard ceiling the search provider accepts for maxResults
UPSTREAM_MAX_RESULTS: int = 50

THUMBNAIL_URL_TEMPLATE: str = "https://img.youtube.com/vi/{video_id}/mqdefault.jpg"
WATCH_URL_TEMPLATE: str = "https://www.youtube.com/watch?v={video_id}"

LIBRARY_KEY: str = "{prefix}{user_id}"

# Suggested interests shown on first run
DEFAULT_INTERESTS: list[str] = [
    "tecnologia",
    "musica",
    "gaming",
    "cucina",
    "sport",
    "scienza",
    "arte",
    "viaggi",
    "fitness",
    "tutorial",
]
