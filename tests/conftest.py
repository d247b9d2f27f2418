import os
import tempfile
from datetime import datetime
from typing import Dict, Generator, Iterable, List, Optional, Set, Tuple

# 测试环境固定使用临时目录作为本地共享目录，需在导入app之前设置
os.environ.setdefault("STORAGE_BACKEND", "local")
os.environ.setdefault("SHARE_ROOT", tempfile.mkdtemp(prefix="file-service-share-"))
os.environ.setdefault("FILE_STORAGE_PATH", "files")
os.environ.setdefault("SPARQL_ENDPOINT", "http://catalog.test/sparql")

import pytest
from app.domain.external.metadata_catalog import Binding, CatalogError
from app.domain.models.file_service_config import FileServiceConfig
from app.domain.models.statement import (
    IRI,
    DeleteWhere,
    InsertData,
    Literal,
    SelectQuery,
    Term,
    Triple,
    Variable,
)
from app.infrastructure.external.blob_store.local_blob_store import LocalBlobStore
from app.main import app
from fastapi.testclient import TestClient

GRAPH = "http://mu.semte.ch/graphs/test"
RESOURCE_BASE = "http://mu.semte.ch/services/file-service/files/"

Solution = Dict[str, Term]


def _resolve(term: Term, solution: Solution) -> Optional[Term]:
    if isinstance(term, Variable):
        return solution.get(term.name)
    return term


def _to_binding_value(term: Term) -> str:
    if isinstance(term, IRI):
        return term.value
    value = term.value
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


class InMemoryCatalog:
    """内存版元数据目录，直接对语句模型做模式匹配，可注入失败"""

    def __init__(self) -> None:
        self.graphs: Dict[str, Set[Tuple[Term, Term, Term]]] = {}
        self.updates: List[list] = []
        self.queries: List[SelectQuery] = []
        self.update_error: Optional[CatalogError] = None
        self.query_error: Optional[CatalogError] = None
        self.apply_failed_update = False  # 失败前已经生效(结果未知的场景)
        self.hide_reads = False  # 模拟授权策略导致写入后读不到

    def triples(self, graph: str = GRAPH) -> Set[Tuple[Term, Term, Term]]:
        return self.graphs.setdefault(graph, set())

    def add(self, graph: str, triples: Iterable[Triple]) -> None:
        store = self.triples(graph)
        for triple in triples:
            store.add((triple.subject, triple.predicate, triple.object))

    def _solutions(self, graph: str, patterns: Tuple[Triple, ...]) -> List[Solution]:
        solutions: List[Solution] = [{}]
        store = self.triples(graph)
        for pattern in patterns:
            next_solutions: List[Solution] = []
            for solution in solutions:
                for stored in store:
                    candidate = dict(solution)
                    if self._unify(pattern, stored, candidate):
                        next_solutions.append(candidate)
            solutions = next_solutions
        return solutions

    @staticmethod
    def _unify(pattern: Triple, stored: Tuple[Term, Term, Term], solution: Solution) -> bool:
        for term, value in zip((pattern.subject, pattern.predicate, pattern.object), stored):
            if isinstance(term, Variable):
                bound = solution.get(term.name)
                if bound is None:
                    solution[term.name] = value
                elif bound != value:
                    return False
            elif term != value:
                return False
        return True

    def _apply(self, statements: list) -> None:
        for statement in statements:
            if isinstance(statement, InsertData):
                self.add(statement.graph, statement.triples)
            elif isinstance(statement, DeleteWhere):
                store = self.triples(statement.graph)
                for solution in self._solutions(statement.graph, statement.patterns):
                    for pattern in statement.patterns:
                        store.discard(
                            tuple(
                                _resolve(term, solution)
                                for term in (pattern.subject, pattern.predicate, pattern.object)
                            )
                        )

    async def run_update(self, statements, timeout: Optional[float] = None) -> None:
        statements = list(statements)
        self.updates.append(statements)
        if self.update_error is not None:
            if self.apply_failed_update:
                self._apply(statements)
            raise self.update_error
        self._apply(statements)

    async def run_query(
        self, query: SelectQuery, timeout: Optional[float] = None
    ) -> List[Binding]:
        self.queries.append(query)
        if self.query_error is not None:
            raise self.query_error
        if self.hide_reads:
            return []

        rows: List[Binding] = []
        for solution in self._solutions(query.graph, query.patterns):
            row = {
                name: _to_binding_value(solution[name])
                for name in query.variables
                if name in solution
            }
            if query.distinct and row in rows:
                continue
            rows.append(row)
        if query.limit is not None:
            rows = rows[: query.limit]
        return rows


@pytest.fixture
def file_service_config() -> FileServiceConfig:
    return FileServiceConfig(graph=GRAPH, file_resource_base=RESOURCE_BASE)


@pytest.fixture
def catalog() -> InMemoryCatalog:
    return InMemoryCatalog()


@pytest.fixture
def blob_store(tmp_path) -> LocalBlobStore:
    store = LocalBlobStore(root=str(tmp_path / "files"), relative_path="files")
    store.init()
    return store


@pytest.fixture(scope="session")
def client() -> Generator[TestClient, None, None]:
    """
    创建一个可供所有测试用例使用的 TestClient 客户端。
    scope="session" 表示这个fixture 在整个测试用例只会实例一次，这样可以提高效率
    :return: TestClient
    """
    with TestClient(app) as c:
        yield c
