"""Application context for explicit state passing.

Commands receive an AppContext instead of reaching for module-level state:
it carries the configuration, the catalog handle and the objects built on
top of it.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from rich.console import Console

from mediadeck.core.config import Config
from mediadeck.core.console import get_console
from mediadeck.core.database import Database, open_database
from mediadeck.domain.library.scanner import ScanCoordinator
from mediadeck.domain.library.store import SqliteLibraryStore
from mediadeck.domain.playlists.collections import CollectionManager


@dataclass
class AppContext:
    """Everything a command needs.

    Attributes:
        config: Application configuration
        db: Catalog handle
        store: Library Store over ``db``
        collections: Queue and playlists sharing per-scope locks
        scans: Guards against concurrent scans
        console: Rich console for user-facing output
        config_path: Where ``config`` is saved back to (None: default path)
    """

    config: Config
    db: Database
    store: SqliteLibraryStore
    collections: CollectionManager
    scans: ScanCoordinator
    console: Console = field(default_factory=get_console)
    config_path: Optional[Path] = None

    @classmethod
    def create(
        cls,
        config: Config,
        db: Optional[Database] = None,
        console: Optional[Console] = None,
        config_path: Optional[Path] = None,
    ) -> "AppContext":
        """Build a context, opening (and migrating) the default catalog if needed."""
        db = db or open_database()
        store = SqliteLibraryStore(db)
        return cls(
            config=config,
            db=db,
            store=store,
            collections=CollectionManager(store),
            scans=ScanCoordinator(store),
            console=console or get_console(),
            config_path=config_path,
        )

    def close(self) -> None:
        self.db.close()
