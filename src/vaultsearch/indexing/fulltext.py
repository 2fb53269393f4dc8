"""Full-text chunk index backed by an in-memory SQLite FTS5 table."""

import base64
import re
import sqlite3
from dataclasses import dataclass
from typing import Iterable

from vaultsearch.indexing.chunking import NoteDocument
from vaultsearch.indexing.errors import IndexCorruptedError

# Porter tokenizer gives stemmed matching ("indexing" finds "indexed").
# id and path are stored for lookups and deletion but not tokenized.
SCHEMA_SQL = """
CREATE VIRTUAL TABLE IF NOT EXISTS fts_content USING fts5(
    id UNINDEXED,
    title,
    content,
    path UNINDEXED,
    tokenize='porter'
);
"""

_TERM_PATTERN = re.compile(r"\w+", re.UNICODE)


@dataclass
class SearchHit:
    """A document with its relevance score (higher is better)."""

    document: NoteDocument
    score: float


def build_match_query(term: str) -> str | None:
    """Turn free text into an FTS5 MATCH expression.

    Each word is quoted so FTS5 operators in user input are treated as text,
    and words are OR-ed so a chunk matching any of them is a hit.

    Returns:
        The MATCH expression, or None if the text has no searchable words.
    """
    words = _TERM_PATTERN.findall(term)
    if not words:
        return None
    return " OR ".join(f'"{word}"' for word in words)


class FullTextIndex:
    """Inverted index over note chunks.

    Supports bulk insert, delete by id, exact path lookup, ranked term search,
    and round-tripping the whole index through a string.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._conn.row_factory = sqlite3.Row

    @classmethod
    def create(cls) -> "FullTextIndex":
        """Create a new, empty index."""
        conn = sqlite3.connect(":memory:", check_same_thread=False)
        conn.executescript(SCHEMA_SQL)
        conn.commit()
        return cls(conn)

    @classmethod
    def deserialize(cls, data: str) -> "FullTextIndex":
        """Restore an index from the string produced by serialize().

        Raises:
            IndexCorruptedError: If the data is not a valid serialized index.
        """
        try:
            image = base64.b64decode(data.encode("ascii"), validate=True)
        except (ValueError, UnicodeEncodeError) as e:
            raise IndexCorruptedError(f"Serialized index is not valid base64: {e}") from e

        conn = sqlite3.connect(":memory:", check_same_thread=False)
        try:
            conn.deserialize(image)
            conn.execute("SELECT count(*) FROM fts_content").fetchone()
        except sqlite3.DatabaseError as e:
            conn.close()
            raise IndexCorruptedError(f"Serialized index could not be opened: {e}") from e
        return cls(conn)

    def serialize(self) -> str:
        """Serialize the whole index to a base64 string."""
        return base64.b64encode(self._conn.serialize()).decode("ascii")

    def insert_many(self, documents: Iterable[NoteDocument]) -> int:
        """Insert documents; returns the number inserted."""
        rows = [(doc.id, doc.title, doc.content, doc.path) for doc in documents]
        self._conn.executemany(
            "INSERT INTO fts_content (id, title, content, path) VALUES (?, ?, ?, ?)",
            rows,
        )
        self._conn.commit()
        return len(rows)

    def delete_by_id(self, doc_id: str) -> int:
        """Delete a document by id; returns the number of rows removed."""
        cursor = self._conn.execute("DELETE FROM fts_content WHERE id = ?", (doc_id,))
        self._conn.commit()
        return cursor.rowcount

    def find_by_path(self, path: str) -> list[NoteDocument]:
        """All documents whose path equals the given path exactly."""
        cursor = self._conn.execute(
            "SELECT id, title, content, path FROM fts_content WHERE path = ?",
            (path,),
        )
        return [self._row_to_document(row) for row in cursor.fetchall()]

    def search(self, term: str, limit: int) -> list[SearchHit]:
        """Ranked keyword search over title and content.

        Scores are negated BM25 values, so a higher score is a better match.
        """
        match_query = build_match_query(term)
        if match_query is None or limit < 1:
            return []

        cursor = self._conn.execute(
            """
            SELECT id, title, content, path, bm25(fts_content) AS rank
            FROM fts_content
            WHERE fts_content MATCH ?
            ORDER BY rank
            LIMIT ?
            """,
            (match_query, limit),
        )
        return [
            SearchHit(document=self._row_to_document(row), score=-float(row["rank"]))
            for row in cursor.fetchall()
        ]

    def all_documents(self, limit: int) -> list[NoteDocument]:
        """Every indexed document, in insertion order, up to limit."""
        cursor = self._conn.execute(
            "SELECT id, title, content, path FROM fts_content ORDER BY rowid LIMIT ?",
            (limit,),
        )
        return [self._row_to_document(row) for row in cursor.fetchall()]

    def indexed_paths(self) -> set[str]:
        cursor = self._conn.execute("SELECT DISTINCT path FROM fts_content")
        return {row["path"] for row in cursor.fetchall()}

    def count(self) -> int:
        return int(self._conn.execute("SELECT count(*) FROM fts_content").fetchone()[0])

    def close(self) -> None:
        """Close the underlying connection."""
        self._conn.close()

    @staticmethod
    def _row_to_document(row: sqlite3.Row) -> NoteDocument:
        return NoteDocument(
            id=row["id"],
            title=row["title"] or "",
            content=row["content"] or "",
            path=row["path"] or "",
        )
