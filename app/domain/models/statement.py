"""元数据目录语句模型

描述发送给图数据库的插入/删除/查询语句，不包含任何具体协议的字符串拼接，
由基础设施层的渲染器负责转义与序列化。
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple, Union


@dataclass(frozen=True)
class IRI:
    """资源标识"""

    value: str


@dataclass(frozen=True)
class Literal:
    """字面量，根据python类型决定数据类型(str/int/datetime)"""

    value: Union[str, int, datetime]


@dataclass(frozen=True)
class Variable:
    """查询变量"""

    name: str


Term = Union[IRI, Literal, Variable]


@dataclass(frozen=True)
class Triple:
    subject: Term
    predicate: Term
    object: Term


@dataclass(frozen=True)
class InsertData:
    """在指定图中插入一组确定的三元组"""

    graph: str
    triples: Tuple[Triple, ...]


@dataclass(frozen=True)
class DeleteWhere:
    """删除指定图中与模式完全匹配的三元组，没有匹配项时不做任何事"""

    graph: str
    patterns: Tuple[Triple, ...]


UpdateStatement = Union[InsertData, DeleteWhere]


@dataclass(frozen=True)
class SelectQuery:
    """在指定图中按模式查询变量绑定"""

    graph: str
    variables: Tuple[str, ...]
    patterns: Tuple[Triple, ...]
    distinct: bool = False
    limit: Optional[int] = None

