from dbkeep.model_manager.parser.ast_utils import (
    as_list,
    extract_default_value,
    extract_function_name,
    extract_string_value,
    first_extracted,
    first_present,
    get_path,
)


def test_extract_string_value_shapes():
    """문자열 값은 여러 형태의 노드에서 추출된다."""
    assert extract_string_value("users") == "users"
    assert extract_string_value({"value": "users"}) == "users"
    assert extract_string_value({"expr": {"value": "users"}}) == "users"
    assert extract_string_value({"type": "column_ref", "column": "email"}) == "email"
    assert extract_string_value({"column": {"expr": {"value": "email"}}}) == "email"
    assert extract_string_value({"db": None, "table": "orders"}) == "orders"
    assert extract_string_value({"name": "idx"}) == "idx"


def test_extract_string_value_missing():
    assert extract_string_value(None) is None
    assert extract_string_value("") is None
    assert extract_string_value(True) is None
    assert extract_string_value({"unrelated": 1}) is None


def test_extract_function_name():
    assert extract_function_name("NOW") == "NOW"
    assert extract_function_name({"name": [{"type": "default", "value": "pg_catalog"}, {"value": "now"}]}) == "pg_catalog.now"
    assert extract_function_name({"name": "uuid"}) == "uuid"
    assert extract_function_name(None) == ""


def test_extract_default_value_literals():
    assert extract_default_value("'x'") == "'x'"
    assert extract_default_value(0) == "0"
    assert extract_default_value(False) == "FALSE"
    assert extract_default_value({"type": "single_quote_string", "value": "active"}) == "'active'"
    assert extract_default_value({"type": "number", "value": 3.5}) == "3.5"
    assert extract_default_value({"type": "null", "value": None}) == "NULL"
    assert extract_default_value({"type": "bool", "value": True}) == "TRUE"


def test_extract_default_value_functions():
    """함수 노드는 NAME() 형태, 인자 없는 CURRENT_TIMESTAMP는 괄호 없이 유지된다."""
    now = {"type": "function", "name": {"name": [{"type": "default", "value": "now"}]}}
    current = {"type": "function", "name": {"name": [{"value": "CURRENT_TIMESTAMP"}]}}

    assert extract_default_value(now) == "now()"
    assert extract_default_value(current) == "CURRENT_TIMESTAMP"
    assert extract_default_value({"type": "default", "value": now}) == "now()"


def test_extract_default_value_expression_text():
    assert extract_default_value({"type": "expression", "value": "nextval('seq')"}) == "nextval('seq')"


def test_path_helpers():
    node = {"table": [{"table": "users"}], "definition": {"dataType": "INT"}}

    assert get_path(node, ("table", 0, "table")) == "users"
    assert get_path(node, ("table", 3, "table")) is None
    assert get_path(node, ("definition", "missing")) is None
    assert first_present(node, ("missing",), ("definition", "dataType")) == "INT"
    assert first_present(node, ("missing",)) is None


def test_first_extracted_uses_first_non_none():
    extractors = (lambda value: None, lambda value: value * 2, lambda value: value * 3)

    assert first_extracted(2, extractors) == 4
    assert first_extracted(2, ()) is None


def test_as_list():
    assert as_list(None) == []
    assert as_list("a") == ["a"]
    assert as_list(("a", "b")) == ["a", "b"]
