"""
services - Business-logic layer sitting between API/UI and DB.
"""

from services.backing_store import BackingStore, SqlBackingStore      # noqa: F401
from services.change_feed import ChangeFeed, feed                     # noqa: F401
from services.directory_service import DirectoryService               # noqa: F401
from services.records_service import RecordsService                   # noqa: F401
from services.search_service import SearchService                     # noqa: F401
