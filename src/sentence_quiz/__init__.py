__version__ = "0.1.0"

from .exceptions import (
    SentenceQuizError as SentenceQuizError,
    ValidationError as ValidationError,
    EntityNotFoundError as EntityNotFoundError,
    StoreError as StoreError,
    DatabaseError as DatabaseError,
    RemoteWriteError as RemoteWriteError,
    RemoteReadError as RemoteReadError,
    NoContentError as NoContentError,
    QuizStateError as QuizStateError,
    AuthenticationError as AuthenticationError,
    ConfigError as ConfigError,
)

from .models import (
    Account as Account,
    Category as Category,
    Progress as Progress,
    QuizMode as QuizMode,
    QuizState as QuizState,
    ReorderResult as ReorderResult,
    Sentence as Sentence,
)

from .collection import (
    CATEGORIES as CATEGORIES,
    OrderedCollection as OrderedCollection,
)
from .config import Settings as Settings, load_settings as load_settings
from .db import SQLiteStore as SQLiteStore
from .engine import SyncEngine as SyncEngine
from .exporter import (
    export_category as export_category,
    format_category as format_category,
    write_export as write_export,
)
from .identity import IdentityContext as IdentityContext
from .quiz import QuizSession as QuizSession
from .store import RemoteStore as RemoteStore

# Batch module - import as submodule to avoid naming conflicts
from . import batch

__all__ = [
    # Batch module
    "batch",
    # Core classes
    "OrderedCollection",
    "SyncEngine",
    "QuizSession",
    "IdentityContext",
    "RemoteStore",
    "SQLiteStore",
    "Settings",
    # Models and enums
    "Account",
    "Category",
    "Sentence",
    "Progress",
    "QuizMode",
    "QuizState",
    "ReorderResult",
    # Constants
    "CATEGORIES",
    # Functions
    "load_settings",
    "format_category",
    "export_category",
    "write_export",
    # Exceptions
    "SentenceQuizError",
    "ValidationError",
    "EntityNotFoundError",
    "StoreError",
    "DatabaseError",
    "RemoteWriteError",
    "RemoteReadError",
    "NoContentError",
    "QuizStateError",
    "AuthenticationError",
    "ConfigError",
]
