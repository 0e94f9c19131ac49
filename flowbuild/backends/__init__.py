"""Finished-job archive backends."""

from flowbuild.backends.base import JobArchive
from flowbuild.backends.memory import MemoryArchive
from flowbuild.backends.sqlite import SQLiteArchive

__all__ = [
    "JobArchive",
    "MemoryArchive",
    "SQLiteArchive",
]
