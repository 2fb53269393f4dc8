"""Host document store: the contract the indexer consumes and a filesystem adapter."""

from vaultsearch.vault.models import VaultFile
from vaultsearch.vault.store import DocumentStore, FileSystemVault

__all__ = ["VaultFile", "DocumentStore", "FileSystemVault"]
