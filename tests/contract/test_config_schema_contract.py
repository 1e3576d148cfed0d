from __future__ import annotations

import json

import jsonschema
import yaml

from resource_forge.config.loader import SCHEMA_PATH
from resource_forge.models.rule import RuleType


def _schema() -> dict:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


def test_schema_is_valid_draft_2020_12():
    jsonschema.Draft202012Validator.check_schema(_schema())


def test_schema_rule_types_match_model():
    enum = _schema()["properties"]["rules"]["items"]["properties"]["type"]["enum"]
    assert enum == [t.value for t in RuleType]


def test_sample_config_validates(sample_config_yaml: str):
    jsonschema.validate(yaml.safe_load(sample_config_yaml), _schema())
