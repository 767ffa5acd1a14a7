"""Read compressed mutfunc matrices from the mutfunc SQLite database.

The database holds one row per (peptide, category)::

    CREATE TABLE consequences (md5 TEXT, item TEXT, matrix BLOB)

where md5 is the hex digest of the translated sequence, item is the
category key (motif, int, mod, exp) and matrix is the gzip-compressed
[position × amino acid] grid.

Design principles:
1. Connection ownership is explicit: one store per worker process
2. Read-only access, no schema management
3. At most one matrix per (peptide, category); a NULL matrix is not stored
"""

import logging
import sqlite3
from pathlib import Path
from typing import Dict, Optional, Union

from ..records.schemas import Category

logger = logging.getLogger(__name__)

_SELECT_ONE = (
    "SELECT matrix FROM consequences WHERE md5 = ? AND item = ? AND matrix IS NOT NULL"
)
_SELECT_ALL = "SELECT md5, item, matrix FROM consequences WHERE md5 = ?"

_CATEGORY_KEYS = {c.value: c for c in Category}


class MatrixBlobStore:
    """Keyed lookup peptide identity → compressed matrix per category.

    Parameters
    ----------
    connection : sqlite3.Connection
        Open connection to a mutfunc database. The store does not share
        it across processes; open one store per worker.

    Examples
    --------
    >>> with MatrixBlobStore.open("mutfunc_data.db") as store:
    ...     blobs = store.fetch_all(peptide_identity(translation))
    ...     motif_blob = store.fetch(peptide_identity(translation), Category.MOTIF)
    """

    def __init__(self, connection: sqlite3.Connection):
        self.connection = connection

    @classmethod
    def open(cls, db_path: Union[str, Path]) -> 'MatrixBlobStore':
        """Open a mutfunc database read-only.

        Raises
        ------
        FileNotFoundError
            If db_path does not exist
        """
        db_path = Path(db_path)

        if not db_path.exists():
            raise FileNotFoundError(f"mutfunc database not found: {db_path}")

        connection = sqlite3.connect(f"{db_path.resolve().as_uri()}?mode=ro", uri=True)
        logger.info(f"Opened mutfunc database: {db_path.name}")

        return cls(connection)

    def fetch(self, peptide_id: str, category: Category) -> Optional[bytes]:
        """Compressed matrix of one category, or None if not stored."""
        row = self.connection.execute(_SELECT_ONE, (peptide_id, category.value)).fetchone()
        if row is None:
            return None
        return bytes(row[0])

    def fetch_all(self, peptide_id: str) -> Dict[Category, bytes]:
        """Every stored category matrix of a peptide.

        Rows with an unknown item key or a NULL matrix are skipped. If a
        category is stored more than once, the first row wins.
        """
        blobs: Dict[Category, bytes] = {}
        for _, item, matrix in self.connection.execute(_SELECT_ALL, (peptide_id,)):
            category = _CATEGORY_KEYS.get(item)
            if category is None:
                logger.debug(f"Ignoring unknown mutfunc item '{item}' for {peptide_id}")
                continue
            if matrix is None:
                continue
            blobs.setdefault(category, bytes(matrix))
        return blobs

    def close(self):
        if self.connection is not None:
            self.connection.close()
            self.connection = None

    def __enter__(self) -> 'MatrixBlobStore':
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
