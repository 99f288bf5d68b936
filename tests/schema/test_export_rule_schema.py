import importlib.util
from pathlib import Path


def _load_script():
    spec = importlib.util.spec_from_file_location("export_rule_schema", Path("scripts/export_rule_schema.py"))
    assert spec is not None and spec.loader is not None
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_rule_schemas_describe_rule_fields() -> None:
    schemas = _load_script().build_schemas()
    assert "applies_to" in schemas["filter_rule.schema.json"]["properties"]
    assert "pattern" in schemas["keyword_limit_rule.schema.json"]["properties"]
