"""REST client for batch CSV uploads and their status endpoints."""

from loguru import logger

from src.batch.models import BatchKind, BatchStatusSnapshot, BatchUploadResult
from src.strategy.infrastructure.http_client import BackendClient


class BatchClient(BackendClient):
    """Upload/status pair shared by the allocation, reallocation and case intake flows."""

    async def upload(
        self, kind: BatchKind, filename: str, content: bytes, uploaded_by: str | None = None
    ) -> BatchUploadResult:
        """
        Upload a CSV file as a new batch.

        Args:
            kind: Which batch flow the file belongs to
            filename: Original file name
            content: Raw CSV bytes
            uploaded_by: Optional uploader id (case intake only)

        Returns:
            Batch acknowledgement with id and initial status
        """
        files = {"file": (filename, content, "text/csv")}
        data = {"uploadedBy": uploaded_by} if uploaded_by else None

        payload = await self._post_multipart(f"{kind.base_url}/upload", files=files, data=data)
        result = self._parse(BatchUploadResult, payload)
        logger.info(f"📤 Uploaded {kind.value} batch {result.batch_id} ({result.total_cases} cases)")
        return result

    async def get_status(self, kind: BatchKind, batch_id: str) -> BatchStatusSnapshot:
        payload = await self._get(f"{kind.base_url}/{batch_id}/status")
        return self._parse(BatchStatusSnapshot, payload)
