import os

TRIGGER: str = "{{"
CLOSE_TRIGGER: str = "}}"

# Quiet period before a query hits the search collaborator (seconds)
DEBOUNCE_SECONDS: float = 0.3

AUTOCOMPLETE_LIMIT: int = 8
PICKER_LIMIT: int = 10

# /* ~~~ runaway guard: close the popup once the query span grows past this ~~~ */
MAX_QUERY_LENGTH: int = 50

# Editor onChange debounce (seconds)
ON_CHANGE_DEBOUNCE_SECONDS: float = 0.5

ENTITY_TYPES: tuple[str, ...] = (
    "attraction",
    "destination",
    "activity",
    "accommodation",
    "eating",
    "region",
)
FALLBACK_ENTITY_TYPE: str = "attraction"

TYPE_LABELS: dict[str, str] = {
    "attraction": "Attraction",
    "destination": "Destination",
    "activity": "Activité",
    "accommodation": "Hébergement",
    "eating": "Restaurant",
    "region": "Région",
}

TYPE_ICONS: dict[str, str] = {
    "attraction": "map-pin",
    "destination": "compass",
    "activity": "tent",
    "accommodation": "bed",
    "eating": "utensils-crossed",
    "region": "map",
}
FALLBACK_ICON: str = "map-pin"

# Remote backend (FastAPI behind the /api proxy)
API_URL: str = os.environ.get("CONTENTREF_API_URL", "")
API_TOKEN: str | None = os.environ.get("CONTENTREF_API_TOKEN") or None
API_TIMEOUT: float = 10.0

VERBOSE: bool = os.environ.get("CONTENTREF_VERBOSE") == "1"

CALLOUT_TYPES: tuple[str, ...] = ("info", "warning", "tip", "important")
DEFAULT_CALLOUT_TYPE: str = "info"
