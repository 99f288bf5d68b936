#!/usr/bin/env python3
"""Export deterministic JSON schema for policy rule entries."""

from __future__ import annotations

import json
import pathlib
import sys
from typing import Any

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from rate_governor.models.rules import FilterRule, KeywordLimitRule  # noqa: E402


def build_schemas() -> dict[str, dict[str, Any]]:
    return {
        "filter_rule.schema.json": FilterRule.model_json_schema(),
        "keyword_limit_rule.schema.json": KeywordLimitRule.model_json_schema(),
    }


def main() -> None:
    out_dir = ROOT / "schemas"
    out_dir.mkdir(parents=True, exist_ok=True)
    for filename, schema in build_schemas().items():
        out_path = out_dir / filename
        out_path.write_text(
            json.dumps(schema, indent=2, sort_keys=True, ensure_ascii=True) + "\n",
            encoding="utf-8",
        )
        print(f"wrote {out_path}")


if __name__ == "__main__":
    main()
