"""Tests del armado de SQL parametrizado."""

import json
import re

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from app.exceptions import NothingToUpdateError
from app.services.proyecto_service import build_update_statement
from app.services.query_builder import (
    FilterBuilder,
    UpdateBuilder,
    like_pattern,
    json_key_path,
    load_document,
)

PLACEHOLDER = re.compile(r":p(\d+)")

FILTROS = ("p.estado = {}", "p.manager_id = {}", "p.cliente_id = {}", "p.codigo = {}")


def placeholders(sql: str) -> list[int]:
    return [int(n) for n in PLACEHOLDER.findall(sql)]


class TestFilterBuilder:
    def test_absent_values_add_no_condition(self):
        stmt = (
            FilterBuilder("SELECT * FROM proyectos p", ["p.activo = TRUE"])
            .filter("p.estado = {}", None)
            .filter("p.manager_id = {}", 7)
            .build()
        )

        assert stmt.sql == "SELECT * FROM proyectos p WHERE p.activo = TRUE AND p.manager_id = :p1"
        assert stmt.params == [7]
        assert stmt.bind_params() == {"p1": 7}

    def test_pagination_params_come_last(self):
        builder = FilterBuilder("SELECT * FROM proyectos p")
        builder.filter("p.estado = {}", "en_curso")
        stmt = builder.build(tail="ORDER BY p.id", limit=10, offset=20)

        assert stmt.sql.endswith("ORDER BY p.id LIMIT :p2 OFFSET :p3")
        assert stmt.params == ["en_curso", 10, 20]

    def test_repeated_placeholder_uses_single_param(self):
        stmt = FilterBuilder("SELECT * FROM proyectos p").filter(
            "(p.nombre LIKE {0} OR p.codigo LIKE {0})", "%a%"
        ).build()

        assert stmt.sql.count(":p1") == 2
        assert stmt.params == ["%a%"]

    def test_count_reuses_where_without_pagination(self):
        builder = FilterBuilder("SELECT * FROM proyectos p", ["p.activo = TRUE"])
        builder.filter("p.estado = {}", "pausado")
        builder.build(limit=5, offset=0)

        count = builder.count("SELECT COUNT(*) FROM proyectos p")
        assert count.sql == "SELECT COUNT(*) FROM proyectos p WHERE p.activo = TRUE AND p.estado = :p1"
        assert count.params == ["pausado"]

    def test_values_are_never_interpolated(self):
        valor = "x'; DROP TABLE proyectos; --"
        stmt = FilterBuilder("SELECT * FROM proyectos p").filter("p.nombre = {}", valor).build()

        assert valor not in stmt.sql
        assert stmt.params == [valor]


@given(
    valores=st.lists(
        st.one_of(st.none(), st.integers(), st.text(max_size=10)),
        min_size=len(FILTROS),
        max_size=len(FILTROS),
    ),
    paginar=st.booleans(),
)
@settings(max_examples=100)
def test_placeholder_n_matches_param_n_minus_one(valores, paginar):
    """Cada valor presente ocupa un placeholder y :pN corresponde a params[N-1]."""
    builder = FilterBuilder("SELECT * FROM proyectos p")
    for fragmento, valor in zip(FILTROS, valores):
        builder.filter(fragmento, valor)
    stmt = builder.build(limit=10, offset=0) if paginar else builder.build()

    presentes = [v for v in valores if v is not None]
    esperados = len(presentes) + (2 if paginar else 0)

    assert len(stmt.params) == esperados
    assert placeholders(stmt.sql) == list(range(1, esperados + 1))
    assert stmt.params[: len(presentes)] == presentes
    for n, valor in enumerate(stmt.params, start=1):
        assert stmt.bind_params()[f"p{n}"] == valor


class TestUpdateBuilder:
    def test_empty_update_raises_before_building(self):
        with pytest.raises(NothingToUpdateError) as exc_info:
            UpdateBuilder("proyectos", ("nombre",)).touch().build("id = {}", 1)

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "No hay datos para actualizar"

    def test_build_update_statement_without_fields(self):
        with pytest.raises(NothingToUpdateError):
            build_update_statement(1, {})

    def test_where_param_goes_last(self):
        stmt = build_update_statement(42, {"nombre": "Obra Sur", "estado": "en_curso"})

        assert stmt.sql == (
            "UPDATE proyectos SET nombre = :p1, estado = :p2, "
            "updated_at = CURRENT_TIMESTAMP WHERE id = :p3"
        )
        assert stmt.params == ["Obra Sur", "en_curso", 42]

    def test_rejects_columns_outside_whitelist(self):
        with pytest.raises(ValueError):
            UpdateBuilder("proyectos", ("nombre",)).set("manager_id = 1 --", 5)

    def test_document_columns_are_serialized(self):
        stmt = build_update_statement(3, {"datos_adicionales": {"clima": "lluvia"}})

        assert json.loads(stmt.params[0]) == {"clima": "lluvia"}

    def test_merge_document_postgresql_uses_jsonb_concat(self):
        builder = UpdateBuilder("proyectos", ("datos_adicionales",), ("datos_adicionales",))
        stmt = builder.merge_document("datos_adicionales", {"b": 2}, "postgresql").build("id = {}", 9)

        assert stmt.sql == (
            "UPDATE proyectos SET datos_adicionales = "
            "CAST(COALESCE(CAST(datos_adicionales AS jsonb), CAST('{}' AS jsonb)) "
            "|| CAST(:p1 AS jsonb) AS json) WHERE id = :p2"
        )
        assert json.loads(stmt.params[0]) == {"b": 2}
        assert stmt.params[1] == 9

    def test_merge_document_sqlite_sets_each_key(self):
        builder = UpdateBuilder("proyectos", ("datos_adicionales",), ("datos_adicionales",))
        stmt = builder.merge_document("datos_adicionales", {"a": 1, "b": {"c": True}}, "sqlite").build(
            "id = {}", 4
        )

        assert stmt.sql == (
            "UPDATE proyectos SET datos_adicionales = "
            "json_set(COALESCE(datos_adicionales, '{}'), :p1, json(:p2), :p3, json(:p4)) WHERE id = :p5"
        )
        assert stmt.params == ['$."a"', "1", '$."b"', '{"c": true}', 4]

    def test_merge_empty_document_keeps_stored_value(self):
        builder = UpdateBuilder("proyectos", ("datos_adicionales",), ("datos_adicionales",))
        stmt = builder.merge_document("datos_adicionales", {}, "sqlite").build("id = {}", 1)

        assert stmt.sql == "UPDATE proyectos SET datos_adicionales = COALESCE(datos_adicionales, '{}') WHERE id = :p1"
        assert stmt.params == [1]

    def test_merge_requires_document_column(self):
        with pytest.raises(ValueError):
            UpdateBuilder("proyectos", ("nombre",)).merge_document("nombre", {"a": 1}, "sqlite")

    def test_merge_rejects_unknown_dialect(self):
        builder = UpdateBuilder("proyectos", ("datos_adicionales",), ("datos_adicionales",))
        with pytest.raises(ValueError):
            builder.merge_document("datos_adicionales", {"a": 1}, "oracle")


class TestDocuments:
    @pytest.mark.parametrize("stored", [None, "", "{}", {}])
    def test_empty_stored_document(self, stored):
        assert load_document(stored) == {}

    def test_load_document_from_text(self):
        assert load_document('{"clave": "valor"}') == {"clave": "valor"}

    def test_key_path_quotes_key(self):
        assert json_key_path("clima.hoy") == '$."clima.hoy"'

    def test_key_path_rejects_double_quotes(self):
        with pytest.raises(ValueError):
            json_key_path('a"b')


def test_like_pattern_escapes_wildcards():
    assert like_pattern("Tubo_50%") == "%tubo\\_50\\%%"


def test_like_pattern_lowercases_non_ascii():
    assert like_pattern("GALPÓN") == "%galpón%"
