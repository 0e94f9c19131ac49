"""Base protocol for job archive backends.

An archive keeps the record of a finished job (status, error, results and
its full event log) after the registry has evicted the live job.
"""

from typing import Protocol, Any, Dict, Optional, runtime_checkable


@runtime_checkable
class JobArchive(Protocol):
    """Protocol for finished-job storage.

    All archives must implement these methods to provide job history.
    """

    async def save(self, record: Dict[str, Any]) -> None:
        """Store a job record, replacing any record with the same job_id.

        Args:
            record: Output of Job.to_record()

        Raises:
            Exception: If save operation fails
        """
        ...

    async def load(self, job_id: str) -> Optional[Dict[str, Any]]:
        """Load the record for a job.

        Returns:
            Record dictionary or None if not found
        """
        ...

    async def delete(self, job_id: str) -> None:
        """Delete the record for a job."""
        ...

    async def exists(self, job_id: str) -> bool:
        """Check if a record exists for a job."""
        ...

    async def list_jobs(self) -> list[str]:
        """List archived job IDs."""
        ...
