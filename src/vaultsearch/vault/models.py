"""Vault file references."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class VaultFile:
    """Reference to one note in the vault.

    Attributes:
        path: Vault-relative POSIX path; also the document id.
        basename: File name without extension; used as the document title.
        mtime: Host-supplied modification timestamp (integer milliseconds).
    """

    path: str
    basename: str
    mtime: int
