from __future__ import annotations

import json
from pathlib import Path

import pytest

from resource_forge.models.rule import RuleType
from resource_forge.services.rules import RULE_CATALOG, RuleBook, RuleValidationError, suggest_rule

"""Rule book and free-text suggester tests."""


def test_add_assigns_insertion_priority():
    book = RuleBook()
    first = book.add(RuleType.CO_RUN, "Together", parameters={"tasks": ["T1", "T2"]})
    second = book.add("loadLimit", "Cap")
    assert first.id.startswith("rule-")
    assert first.id != second.id
    assert (first.priority, second.priority) == (1, 2)
    assert second.type is RuleType.LOAD_LIMIT
    assert len(book) == 2


@pytest.mark.parametrize("rule_type,name", [(None, "x"), ("coRun", ""), ("coRun", "   ")])
def test_add_requires_type_and_name(rule_type, name):
    with pytest.raises(RuleValidationError, match="Please provide rule type and name"):
        RuleBook().add(rule_type, name)


def test_add_rejects_unknown_type():
    with pytest.raises(RuleValidationError, match="Unknown rule type"):
        RuleBook().add("teleport", "x")


def test_remove_leaves_priority_gap():
    book = RuleBook()
    a = book.add(RuleType.CO_RUN, "A")
    b = book.add(RuleType.PHASE_WINDOW, "B")
    assert book.remove(a.id) is True
    assert book.remove("rule-0") is False
    assert [r.priority for r in book] == [b.priority] == [2]
    c = book.add(RuleType.PATTERN_MATCH, "C")
    assert c.priority == 2


def test_to_config_metadata():
    book = RuleBook()
    book.add(RuleType.CO_RUN, "A")
    book.add(RuleType.LOAD_LIMIT, "B")
    book.add(RuleType.CO_RUN, "C")
    cfg = book.to_config()
    assert cfg["version"] == "1.0"
    assert cfg["timestamp"].endswith("Z")
    assert cfg["metadata"] == {
        "totalRules": 3,
        "ruleTypes": ["coRun", "loadLimit"],
        "generatedBy": "Resource Forge",
    }
    assert set(cfg["rules"][0]) == {"id", "type", "name", "description", "parameters", "priority"}


def test_write_config(tmp_path: Path):
    book = RuleBook.from_dicts([{"type": "phaseWindow", "name": "Early", "parameters": {"taskId": "T1"}}])
    path = book.write_config(tmp_path / "out" / "rules-config.json")
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["rules"][0]["parameters"] == {"taskId": "T1"}
    assert data["metadata"]["totalRules"] == 1



def test_batch_loaded_rules_get_distinct_ids():
    book = RuleBook.from_dicts(
        [{"type": "coRun", "name": "a"}, {"type": "loadLimit", "name": "b"}, {"type": "coRun", "name": "c"}]
    )
    ids = [r.id for r in book]
    assert len(set(ids)) == 3
    assert all(i.startswith("rule-") for i in ids)
    assert book.remove(ids[0]) is True
    assert [r.name for r in book] == ["b", "c"]


def test_same_millisecond_ids_get_suffix(monkeypatch):
    monkeypatch.setattr("resource_forge.services.rules.time.time_ns", lambda: 1_700_000_000_000_000_000)
    book = RuleBook()
    ids = [book.add(RuleType.CO_RUN, n).id for n in ("a", "b", "c")]
    assert ids == ["rule-1700000000000", "rule-1700000000000-2", "rule-1700000000000-3"]


@pytest.mark.parametrize(
    "text,rule_type,name",
    [
        ("T1 and T2 must run together", RuleType.CO_RUN, "AI Generated Co-Run Rule"),
        ("Workers should not work more than 3 slots", RuleType.LOAD_LIMIT, "AI Generated Load Limit"),
        ("Run T3 only in phase 2", RuleType.PHASE_WINDOW, "AI Generated Phase Window"),
        # 先に一致したバケットが優先
        ("limit tasks that run together", RuleType.CO_RUN, "AI Generated Co-Run Rule"),
    ],
)
def test_suggest_rule_buckets(text, rule_type, name):
    s = suggest_rule(text)
    assert s is not None
    assert s.type is rule_type
    assert s.name == name
    assert s.description.endswith(f"{text[:100]}...")
    assert s.parameters == RULE_CATALOG[rule_type].default_parameters


def test_suggest_rule_no_match():
    assert suggest_rule("hello there") is None
    assert suggest_rule("") is None
    assert suggest_rule(None) is None


def test_suggestion_parameters_are_copies():
    s = suggest_rule("run together")
    s.parameters["tasks"].append("T1")
    assert RULE_CATALOG[RuleType.CO_RUN].default_parameters == {"tasks": []}
    rule = RuleBook().accept(s)
    assert rule.parameters == {"tasks": ["T1"]}
    assert rule.description.startswith("Tasks should run together based on: run together")
