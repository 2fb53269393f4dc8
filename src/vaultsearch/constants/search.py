"""Search and context formatting constants.

These settings control hybrid search (SQLite FTS5 full-text + cosine vector
similarity) and how results are rendered into the context block handed to the
chat model.
"""

# =============================================================================
# Result Limits
# =============================================================================
# MAX_SEARCH_RESULTS is the number of results placed in the context. Hybrid
# search over-fetches HYBRID_FETCH_MULTIPLIER times that from each source
# before merging. Vector search scores every stored chunk up to
# VECTOR_SCAN_LIMIT.

DEFAULT_MAX_SEARCH_RESULTS = 5
HYBRID_FETCH_MULTIPLIER = 2
VECTOR_SCAN_LIMIT = 1000

# =============================================================================
# Snippets
# =============================================================================
# Chunks up to MAX_SNIPPET_LENGTH characters are shown whole. Longer chunks
# are cut to a window around the first occurrence of the query.

MAX_SNIPPET_LENGTH = 500
SNIPPET_CONTEXT_BEFORE = 200
SNIPPET_CONTEXT_AFTER = 300

# =============================================================================
# Sentinel Responses
# =============================================================================
# Search never raises into the chat flow. These strings are returned instead.

NO_RESULTS_MESSAGE = "No relevant content found in the vault."
SEARCH_ERROR_MESSAGE = "Error searching vault."
SEARCH_RESULTS_HEADER = "Search results from vault:\n\n"
RESULT_SEPARATOR = "---\n\n"
