"""In-memory job archive for testing and development.

Records are lost when the process terminates.
"""

from typing import Dict, Any, Optional
import copy


class MemoryArchive:
    """In-memory job archive.

    Useful for:
    - Testing
    - Development
    - Short-lived processes that only need history within their lifetime
    """

    def __init__(self):
        """Initialize memory archive with empty storage."""
        self._storage: Dict[str, Dict[str, Any]] = {}

    async def save(self, record: Dict[str, Any]) -> None:
        # Deep copy to avoid external mutations
        self._storage[record["job_id"]] = copy.deepcopy(record)

    async def load(self, job_id: str) -> Optional[Dict[str, Any]]:
        if job_id in self._storage:
            return copy.deepcopy(self._storage[job_id])
        return None

    async def delete(self, job_id: str) -> None:
        self._storage.pop(job_id, None)

    async def exists(self, job_id: str) -> bool:
        return job_id in self._storage

    async def list_jobs(self) -> list[str]:
        return list(self._storage.keys())

    def clear_all(self) -> None:
        """Clear all stored records."""
        self._storage.clear()

    def __repr__(self) -> str:
        return f"MemoryArchive(jobs={len(self._storage)})"
