"""Internal constants shared across the library."""

DEFAULT_NOTION_BASE_URL = "https://api.notion.com"
DEFAULT_NOTION_VERSION = "2022-06-28"
USER_AGENT = "pynotionpoll"

#: Notion caps database queries at 100 results per page.
MAX_PAGE_SIZE = 100

DEFAULT_TOPIC = "notion-events"
DEFAULT_STATE_URI = "file://./state/notion-state.json"

STATE_CONTENT_TYPE = "application/json"
GZIP_ENCODING = "gzip"
GZIP_MAGIC = b"\x1f\x8b"
