"""Indexing and persistence constants.

These values control how notes are split into chunks, how long the indexer
waits after an edit before reindexing a file, and how often the in-memory
index is flushed to its sidecar file.
"""

# =============================================================================
# Chunking
# =============================================================================
# Chunks are fixed-size character windows. Consecutive chunks share
# CHUNK_OVERLAP characters so a sentence cut at a boundary still appears whole
# in at least one chunk. Overlap must stay below the chunk size.

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_CHUNK_OVERLAP = 200
CHUNK_ID_SEPARATOR = "-chunk-"

# =============================================================================
# Change Debounce
# =============================================================================
# Editors save often. A modification resets a per-file cooldown so a burst of
# saves results in a single reindex once the file has been quiet this long.

FILE_EDIT_COOLDOWN_SECONDS = 5.0

# =============================================================================
# Autosave
# =============================================================================
# Mutations mark the index dirty. A background timer checks every
# AUTOSAVE_CHECK_INTERVAL seconds and writes the sidecar once the index has
# been dirty for longer than AUTOSAVE_DELAY seconds.

AUTOSAVE_DELAY_SECONDS = 5.0
AUTOSAVE_CHECK_INTERVAL_SECONDS = 1.0

# =============================================================================
# Sidecar Format
# =============================================================================
# Top-level keys of the persisted JSON document. Changing these breaks
# compatibility with previously written index files.

SIDECAR_SERIALIZED_INDEX_KEY = "serializedIndex"
SIDECAR_FILE_TIMES_KEY = "fileModificationTimes"
SIDECAR_EMBEDDINGS_KEY = "documentEmbeddings"
