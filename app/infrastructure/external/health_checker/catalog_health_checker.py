import logging

from app.domain.external.health_checker import HealthChecker
from app.domain.external.metadata_catalog import MetadataCatalog
from app.domain.models.health_status import HealthStatus
from app.domain.models.statement import SelectQuery, Triple, Variable

logger = logging.getLogger(__name__)


class CatalogHealthChecker(HealthChecker):
    """Metadata catalog health checker"""

    def __init__(self, catalog: MetadataCatalog, graph: str) -> None:
        self._catalog = catalog
        self._graph = graph
        self.service_name = "catalog"

    async def check(self) -> HealthStatus:
        """Run a one-row query against the file graph to verify connectivity."""
        probe = SelectQuery(
            graph=self._graph,
            variables=("s",),
            patterns=(Triple(Variable("s"), Variable("p"), Variable("o")),),
            limit=1,
        )
        try:
            await self._catalog.run_query(probe)
            return HealthStatus(service=self.service_name, status="ok")
        except Exception as e:
            logger.error(f"Catalog health check failed: {str(e)}")
            return HealthStatus(
                service=self.service_name,
                status="error",
                details=str(e),
            )
