"""Configuration constants.

Re-exports all constants for convenient importing:
    from vaultsearch.constants import MAX_SNIPPET_LENGTH, VECTOR_SCAN_LIMIT
"""

from vaultsearch.constants.indexing import *  # noqa: F403
from vaultsearch.constants.search import *  # noqa: F403
from vaultsearch.constants.embedding import *  # noqa: F403
