"""Filesystem layer: async primitives, transactions and locks."""

from oops.fs.filesystem import FileInfo, FileSystem
from oops.fs.locks import STATE_LOCK_KEY, LockRegistry
from oops.fs.transaction import (
    FileOperation,
    FileOperations,
    OperationType,
    Transaction,
    TransactionState,
)

__all__ = [
    "STATE_LOCK_KEY",
    "FileInfo",
    "FileOperation",
    "FileOperations",
    "FileSystem",
    "LockRegistry",
    "OperationType",
    "Transaction",
    "TransactionState",
]
