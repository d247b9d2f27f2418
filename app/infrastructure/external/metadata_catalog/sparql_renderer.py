"""将语句模型渲染为SPARQL 1.1文本

所有的字面量与uri都经过转义/校验后再拼接，调用方不能直接传入SPARQL片段。
"""
import re
from datetime import datetime, timezone
from typing import Sequence

from app.domain.external.metadata_catalog import MalformedCatalogRequestError
from app.domain.models.statement import (
    IRI,
    DeleteWhere,
    InsertData,
    Literal,
    SelectQuery,
    Term,
    Triple,
    UpdateStatement,
    Variable,
)

XSD_INTEGER = "http://www.w3.org/2001/XMLSchema#integer"
XSD_DATETIME = "http://www.w3.org/2001/XMLSchema#dateTime"

_IRI_FORBIDDEN = re.compile(r'[\x00-\x20<>"{}|^`\\]')
_VARIABLE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_STRING_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "'": "\\'",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\b": "\\b",
    "\f": "\\f",
}


def escape_string(value: str) -> str:
    """转义字符串字面量并加上双引号"""
    return '"' + "".join(_STRING_ESCAPES.get(char, char) for char in value) + '"'


def escape_iri(value: str) -> str:
    """校验uri中不包含非法字符并加上尖括号"""
    if not value or _IRI_FORBIDDEN.search(value):
        raise MalformedCatalogRequestError(f"非法的uri: {value!r}")
    return f"<{value}>"


def escape_datetime(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return f'"{value.isoformat()}"^^{escape_iri(XSD_DATETIME)}'


def render_term(term: Term) -> str:
    if isinstance(term, IRI):
        return escape_iri(term.value)
    if isinstance(term, Variable):
        if not _VARIABLE_NAME.match(term.name):
            raise MalformedCatalogRequestError(f"非法的变量名: {term.name!r}")
        return f"?{term.name}"
    if isinstance(term, Literal):
        value = term.value
        # bool是int的子类，需要先排除
        if isinstance(value, bool):
            raise MalformedCatalogRequestError("不支持布尔类型的字面量")
        if isinstance(value, int):
            return f'"{value}"^^{escape_iri(XSD_INTEGER)}'
        if isinstance(value, datetime):
            return escape_datetime(value)
        if isinstance(value, str):
            return escape_string(value)
    raise MalformedCatalogRequestError(f"不支持的语句项: {term!r}")


def render_triples(triples: Sequence[Triple]) -> str:
    if not triples:
        raise MalformedCatalogRequestError("语句中至少需要一个三元组")
    return " ".join(
        f"{render_term(t.subject)} {render_term(t.predicate)} {render_term(t.object)} ."
        for t in triples
    )


def render_update_statement(statement: UpdateStatement) -> str:
    if isinstance(statement, InsertData):
        for triple in statement.triples:
            if any(
                isinstance(term, Variable)
                for term in (triple.subject, triple.predicate, triple.object)
            ):
                raise MalformedCatalogRequestError("INSERT DATA中不能包含变量")
        keyword = "INSERT DATA"
        body = render_triples(statement.triples)
    elif isinstance(statement, DeleteWhere):
        keyword = "DELETE WHERE"
        body = render_triples(statement.patterns)
    else:
        raise MalformedCatalogRequestError(f"不支持的更新语句: {statement!r}")
    return f"{keyword} {{ GRAPH {escape_iri(statement.graph)} {{ {body} }} }}"


def render_update(statements: Sequence[UpdateStatement]) -> str:
    """将一批更新语句渲染为一个请求体，语句之间使用`;`分隔"""
    if not statements:
        raise MalformedCatalogRequestError("更新批次不能为空")
    return " ;\n".join(render_update_statement(s) for s in statements)


def render_select(query: SelectQuery) -> str:
    if not query.variables:
        raise MalformedCatalogRequestError("查询中至少需要一个变量")
    projection = " ".join(render_term(Variable(name)) for name in query.variables)
    distinct = "DISTINCT " if query.distinct else ""
    text = (
        f"SELECT {distinct}{projection} WHERE {{ "
        f"GRAPH {escape_iri(query.graph)} {{ {render_triples(query.patterns)} }} }}"
    )
    if query.limit is not None:
        text += f" LIMIT {int(query.limit)}"
    return text
