import logging

from app.domain.external.blob_store import BlobStore
from app.domain.external.health_checker import HealthChecker
from app.domain.models.health_status import HealthStatus

logger = logging.getLogger(__name__)

_PROBE_NAME = "__healthcheck__"


class BlobStoreHealthChecker(HealthChecker):
    """File storage health checker"""

    def __init__(self, blob_store: BlobStore, service_name: str = "blob_store") -> None:
        self._blob_store = blob_store
        self.service_name = service_name

    async def check(self) -> HealthStatus:
        """Probe the storage root/bucket with an existence check."""
        try:
            await self._blob_store.exists(_PROBE_NAME)
            return HealthStatus(service=self.service_name, status="ok")
        except Exception as e:
            logger.error(f"{self.service_name} health check failed: {str(e)}")
            return HealthStatus(
                service=self.service_name,
                status="error",
                details=str(e),
            )
