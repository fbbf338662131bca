"""Tests for condition evaluation and install validity."""

import pytest

from loot_report.engine.conditions import (
    ConditionError,
    FileStateEvaluator,
    InstallState,
    evaluate_all_conditions,
    evaluate_messages,
)
from loot_report.engine.validity import check_install_validity
from loot_report.models.metadata import (
    DirtyInfo,
    Message,
    MessageContent,
    PluginMetadata,
    PluginReference,
    Tag,
)


STATE = InstallState(
    installed={"a.esp": 0x1111, "b.esp": 0x2222},
    active=frozenset({"a.esp"}),
)


class _FakeEvaluator:
    """Conditions are 'true', 'false' or anything else (which fails)."""

    def __init__(self):
        self.languages = []

    def evaluate(self, condition, state, language):
        self.languages.append(language)
        if condition == "true":
            return True
        if condition == "false":
            return False
        raise ConditionError(f"cannot parse {condition}")


@pytest.mark.parametrize(
    "condition, expected",
    [
        ('file("A.esp")', True),
        ('file("missing.esp")', False),
        ('active("a.esp")', True),
        ('active("b.esp")', False),
        ('not active("b.esp")', True),
        ('not file("a.esp")', False),
        ('checksum("a.esp", 1111)', True),
        ('checksum("b.esp", 1111)', False),
        ('checksum("missing.esp", 0)', False),
    ],
)
def test_file_state_evaluator(condition, expected):
    assert FileStateEvaluator().evaluate(condition, STATE, None) is expected


@pytest.mark.parametrize(
    "condition",
    ['file("a.esp") and active("b.esp")', "version(x)", 'checksum("a.esp")', 'file("a.esp", 12)'],
)
def test_file_state_evaluator_rejects_unsupported(condition):
    with pytest.raises(ConditionError):
        FileStateEvaluator().evaluate(condition, STATE, None)


def test_evaluate_all_conditions_filters_false_entries():
    metadata = PluginMetadata(
        name="a.esp",
        tags={Tag("Keep", condition="true"), Tag("Drop", condition="false"), Tag("Plain")},
        load_after={PluginReference("x.esp", condition="false"), PluginReference("y.esp")},
        requirements={PluginReference("r.esp", condition="false")},
        incompatibilities={PluginReference("i.esp", condition="true")},
        messages=[
            Message.plain("say", "kept", "true"),
            Message.plain("say", "dropped", "false"),
            Message.plain("warn", "unconditional"),
        ],
        dirty_info={DirtyInfo("T", itm_count=1, condition="false"), DirtyInfo("U")},
    )

    result, failures = evaluate_all_conditions(metadata, STATE, _FakeEvaluator(), None)

    assert failures == []
    assert {t.name for t in result.tags} == {"Keep", "Plain"}
    assert result.load_after == {PluginReference("y.esp")}
    assert result.requirements == set()
    assert result.incompatibilities == {PluginReference("i.esp", condition="true")}
    assert [m.text for m in result.messages] == ["kept", "unconditional"]
    assert result.dirty_info == {DirtyInfo("U")}
    # input untouched
    assert len(metadata.messages) == 3


def test_evaluate_all_conditions_fails_open_per_rule():
    metadata = PluginMetadata(
        name="a.esp",
        tags={Tag("Broken", condition="???"), Tag("Drop", condition="false")},
        messages=[Message.plain("say", "also broken", "!!!")],
    )

    result, failures = evaluate_all_conditions(metadata, STATE, _FakeEvaluator(), None)

    assert {t.name for t in result.tags} == {"Broken"}
    assert [m.text for m in result.messages] == ["also broken"]
    assert len(failures) == 2
    assert all(f.plugin_name == "a.esp" for f in failures)
    assert {f.condition for f in failures} == {"???", "!!!"}


def test_evaluate_all_conditions_drops_dirty_info_for_other_crc():
    metadata = PluginMetadata(
        name="a.esp",
        dirty_info={
            DirtyInfo("T", itm_count=1, crc=0x1111),
            DirtyInfo("T", itm_count=9, crc=0x9999),
            DirtyInfo("T", udr_count=2),
        },
    )
    result, _ = evaluate_all_conditions(metadata, STATE, _FakeEvaluator(), None)
    assert result.dirty_info == {DirtyInfo("T", itm_count=1, crc=0x1111), DirtyInfo("T", udr_count=2)}


def test_evaluate_messages_passes_language_and_narrows_content():
    evaluator = _FakeEvaluator()
    message = Message(
        "say",
        (MessageContent("Hello", "en"), MessageContent("Hallo", "de")),
        condition="true",
    )

    kept, failures = evaluate_messages([message], STATE, evaluator, "de")

    assert failures == []
    assert evaluator.languages == ["de"]
    assert kept[0].content == (MessageContent("Hallo", "de"),)


def test_unconditioned_entries_never_reach_evaluator():
    evaluator = _FakeEvaluator()
    metadata = PluginMetadata(name="a.esp", tags={Tag("Plain")}, messages=[Message.plain("say", "x")])
    evaluate_all_conditions(metadata, STATE, evaluator, "en")
    assert evaluator.languages == []


def test_any_evaluator_exception_fails_open():
    class _Broken:
        def evaluate(self, condition, state, language):
            raise KeyError(condition)

    metadata = PluginMetadata(name="a.esp", tags={Tag("Kept", condition="x")})
    result, failures = evaluate_all_conditions(metadata, STATE, _Broken(), None)

    assert {t.name for t in result.tags} == {"Kept"}
    assert [f.condition for f in failures] == ["x"]


def test_check_install_validity_reports_violations():
    metadata = PluginMetadata(
        name="a.esp",
        requirements={PluginReference("b.esp"), PluginReference("missing.esp", display="Missing Mod")},
        incompatibilities={PluginReference("B.ESP"), PluginReference("gone.esp")},
    )

    violations = check_install_validity(metadata, STATE)

    assert violations == 2
    assert [m.severity for m in metadata.messages] == ["error", "error"]
    assert metadata.messages[0].text == (
        'This plugin requires "Missing Mod" to be installed, but it is missing.'
    )
    assert metadata.messages[1].text == (
        'This plugin is incompatible with "B.ESP", but both are present.'
    )


def test_check_install_validity_clean():
    metadata = PluginMetadata(name="a.esp", requirements={PluginReference("b.esp")})
    assert check_install_validity(metadata, STATE) == 0
    assert metadata.messages == []
