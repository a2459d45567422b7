"""
Construcción de SQL parametrizado a partir de campos opcionales.

Cada valor incluido ocupa un único placeholder numerado (:p1, :p2, ...) en el
orden en que se agrega, de modo que el placeholder N siempre corresponde al
índice N-1 de la lista de parámetros. Los valores nunca se interpolan en el
texto SQL; los nombres de columna solo se aceptan desde una lista blanca.

Los fragmentos usan `{}` (o `{0}` si se repite) para marcar dónde va el
placeholder de su valor:

    builder = FilterBuilder("SELECT * FROM proyectos p", ["p.activo = TRUE"])
    builder.filter("p.estado = {}", estado)
    stmt = builder.build(tail="ORDER BY p.created_at DESC", limit=10, offset=0)
    db.execute(text(stmt.sql), stmt.bind_params())
"""

import json
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

from app.exceptions import NothingToUpdateError

PLACEHOLDER_PREFIX = "p"


def placeholder(position: int) -> str:
    return f":{PLACEHOLDER_PREFIX}{position}"


@dataclass
class SQLStatement:
    """Texto SQL más la lista ordenada de parámetros que lo acompaña."""

    sql: str
    params: list = field(default_factory=list)

    def bind_params(self) -> dict[str, Any]:
        return {
            f"{PLACEHOLDER_PREFIX}{position}": value
            for position, value in enumerate(self.params, start=1)
        }


class _ParamList:
    def __init__(self):
        self.values: list = []

    def add(self, value: Any) -> str:
        self.values.append(value)
        return placeholder(len(self.values))


class FilterBuilder:
    """Arma una sentencia con WHERE dinámico y paginación al final."""

    def __init__(self, base_sql: str, conditions: Iterable[str] = ()):
        self.base_sql = base_sql.strip()
        self._conditions = list(conditions)
        self._params = _ParamList()

    @property
    def params(self) -> list:
        return list(self._params.values)

    def where(self, fragment: str) -> "FilterBuilder":
        """Condición fija, sin parámetros."""
        self._conditions.append(fragment)
        return self

    def filter(self, fragment: str, value: Any) -> "FilterBuilder":
        """Agrega la condición solo si el valor está presente."""
        if value is None:
            return self
        self._conditions.append(fragment.format(self._params.add(value)))
        return self

    def where_clause(self) -> str:
        if not self._conditions:
            return ""
        return "WHERE " + " AND ".join(self._conditions)

    def build(
        self,
        tail: str = "",
        limit: Optional[int] = None,
        offset: Optional[int] = None
    ) -> SQLStatement:
        params = self.params
        parts = [self.base_sql, self.where_clause(), tail.strip()]

        if limit is not None:
            params.append(limit)
            parts.append(f"LIMIT {placeholder(len(params))}")
            params.append(offset or 0)
            parts.append(f"OFFSET {placeholder(len(params))}")

        return SQLStatement(" ".join(part for part in parts if part), params)

    def count(self, count_sql: str) -> SQLStatement:
        """Mismo WHERE y parámetros sobre otra consulta base (sin paginación)."""
        parts = [count_sql.strip(), self.where_clause()]
        return SQLStatement(" ".join(part for part in parts if part), self.params)


class UpdateBuilder:
    """
    Arma un UPDATE con lista SET dinámica.

    Las columnas de tipo documento se serializan a JSON antes de enlazarse.
    Si al construir no hay ningún campo, se lanza NothingToUpdateError sin
    generar sentencia alguna.
    """

    def __init__(
        self,
        table: str,
        allowed_columns: Iterable[str],
        document_columns: Iterable[str] = ()
    ):
        self.table = table
        self.allowed_columns = frozenset(allowed_columns)
        self.document_columns = frozenset(document_columns)
        self._assignments: list[str] = []
        self._fixed: list[str] = []
        self._params = _ParamList()

    @property
    def params(self) -> list:
        return list(self._params.values)

    def set(self, column: str, value: Any) -> "UpdateBuilder":
        if column not in self.allowed_columns:
            raise ValueError(f"Columna no actualizable: {column}")
        if column in self.document_columns:
            value = serialize_document(value)
        self._assignments.append(f"{column} = {self._params.add(value)}")
        return self

    def set_fields(self, fields: Mapping[str, Any]) -> "UpdateBuilder":
        for column, value in fields.items():
            self.set(column, value)
        return self

    def merge_document(self, column: str, incoming: Mapping, dialect: str) -> "UpdateBuilder":
        """
        Merge superficial resuelto por la base de datos dentro del mismo UPDATE:
        las claves entrantes reemplazan a las guardadas y el resto se conserva.
        El documento guardado nunca se lee antes de escribir.
        """
        if column not in self.document_columns:
            raise ValueError(f"Columna no es un documento: {column}")

        if dialect == "postgresql":
            value = self._params.add(serialize_document(incoming))
            expression = (
                f"CAST(COALESCE(CAST({column} AS jsonb), CAST('{{}}' AS jsonb)) "
                f"|| CAST({value} AS jsonb) AS json)"
            )
        elif dialect == "sqlite":
            expression = f"COALESCE({column}, '{{}}')"
            pairs = []
            for key, value in incoming.items():
                path = self._params.add(json_key_path(key))
                pairs.append(f"{path}, json({self._params.add(serialize_value(value))})")
            if pairs:
                expression = f"json_set({expression}, {', '.join(pairs)})"
        else:
            raise ValueError(f"Dialecto no soportado: {dialect}")

        self._assignments.append(f"{column} = {expression}")
        return self

    def touch(self, column: str = "updated_at") -> "UpdateBuilder":
        self._fixed.append(f"{column} = CURRENT_TIMESTAMP")
        return self

    def build(self, where_fragment: str, where_value: Any) -> SQLStatement:
        if not self._assignments:
            raise NothingToUpdateError()

        params = self.params
        params.append(where_value)
        where_sql = where_fragment.format(placeholder(len(params)))
        set_sql = ", ".join(self._assignments + self._fixed)
        return SQLStatement(f"UPDATE {self.table} SET {set_sql} WHERE {where_sql}", params)


def load_document(value: Any) -> dict:
    """Normaliza un documento guardado (texto JSON, dict o NULL) a dict."""
    if value is None or value == "":
        return {}
    if isinstance(value, (str, bytes)):
        value = json.loads(value)
    return dict(value)


def serialize_document(document: Optional[Mapping]) -> str:
    return json.dumps(dict(document or {}), ensure_ascii=False, default=str)


def serialize_value(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, default=str)


def json_key_path(key: str) -> str:
    """Ruta JSON de SQLite para una clave de primer nivel (sin comillas dobles)."""
    if '"' in key:
        raise ValueError(f"Clave de documento inválida: {key}")
    return f'$."{key}"'


def like_pattern(term: str) -> str:
    """Patrón LIKE de 'contiene' con los comodines del usuario escapados."""
    escaped = term.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"
