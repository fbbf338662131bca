"""Tests for PluginMetadata merge semantics and MetadataList lookups."""

from loot_report.models.metadata import (
    DirtyInfo,
    Message,
    MessageContent,
    MetadataList,
    PluginMetadata,
    PluginReference,
    Tag,
    merge_layers,
)


def _masterlist_entry() -> PluginMetadata:
    return PluginMetadata(
        name="a.esp",
        priority=10,
        tags={Tag("Delev")},
        load_after={PluginReference("b.esp")},
        messages=[Message.plain("say", "from masterlist")],
        dirty_info={DirtyInfo("FNVEdit", itm_count=2)},
    )


def test_fresh_record_is_name_only():
    assert PluginMetadata(name="a.esp").has_name_only()


def test_each_field_breaks_name_only():
    variants = [
        PluginMetadata(name="a.esp", priority=-5),
        PluginMetadata(name="a.esp", enabled=False),
        PluginMetadata(name="a.esp", tags={Tag("Relev")}),
        PluginMetadata(name="a.esp", load_after={PluginReference("b.esp")}),
        PluginMetadata(name="a.esp", requirements={PluginReference("b.esp")}),
        PluginMetadata(name="a.esp", incompatibilities={PluginReference("b.esp")}),
        PluginMetadata(name="a.esp", messages=[Message.plain("warn", "x")]),
        PluginMetadata(name="a.esp", dirty_info={DirtyInfo("TES5Edit")}),
    ]
    for variant in variants:
        assert not variant.has_name_only()


def test_merging_name_only_keeps_name_only():
    base = PluginMetadata(name="a.esp")
    base.merge_metadata(PluginMetadata(name="A.ESP"))
    assert base.has_name_only()


def test_merge_scalar_overwrites_only_when_non_default():
    base = _masterlist_entry()
    base.merge_metadata(PluginMetadata(name="a.esp"))
    assert base.priority == 10
    assert base.enabled is True

    base.merge_metadata(PluginMetadata(name="a.esp", priority=-20, enabled=False))
    assert base.priority == -20
    assert base.enabled is False


def test_merge_unions_sets_and_concatenates_messages():
    base = _masterlist_entry()
    base.merge_metadata(PluginMetadata(
        name="a.esp",
        tags={Tag("Delev"), Tag("Names")},
        load_after={PluginReference("c.esp")},
        messages=[Message.plain("warn", "from userlist")],
    ))

    assert base.tags == {Tag("Delev"), Tag("Names")}
    assert base.load_after == {PluginReference("b.esp"), PluginReference("c.esp")}
    assert [m.text for m in base.messages] == ["from masterlist", "from userlist"]


def test_merge_is_not_commutative():
    masterlist = PluginMetadata(name="a.esp", priority=10)
    userlist = PluginMetadata(name="a.esp", priority=20)

    assert merge_layers(PluginMetadata(name="a.esp"), [masterlist, userlist]).priority == 20
    assert merge_layers(PluginMetadata(name="a.esp"), [userlist, masterlist]).priority == 10


def test_repeated_merge_is_idempotent_for_sets_only():
    base = PluginMetadata(name="a.esp")
    layer = _masterlist_entry()
    base.merge_metadata(layer)
    base.merge_metadata(layer)

    assert base.tags == layer.tags
    assert base.dirty_info == layer.dirty_info
    assert len(base.messages) == 2


def test_merge_layers_does_not_touch_inputs():
    base = PluginMetadata(name="a.esp")
    layer = _masterlist_entry()
    merged = merge_layers(base, [layer])

    assert base.has_name_only()
    assert merged == layer
    merged.tags.add(Tag("Names"))
    assert Tag("Names") not in layer.tags


def test_equality_ignores_name_case():
    assert PluginMetadata(name="A.esp") == PluginMetadata(name="a.ESP")


def test_find_plugin_is_case_insensitive_copy():
    metadata_list = MetadataList.from_entries([_masterlist_entry()])
    found = metadata_list.find_plugin("A.ESP")

    assert found.priority == 10
    found.tags.clear()
    assert metadata_list.find_plugin("a.esp").tags == {Tag("Delev")}


def test_find_plugin_missing_returns_name_only():
    found = MetadataList().find_plugin("Missing.esp")
    assert found.name == "Missing.esp"
    assert found.has_name_only()


def test_add_plugin_merges_duplicates():
    metadata_list = MetadataList.from_entries([
        PluginMetadata(name="a.esp", tags={Tag("Delev")}),
        PluginMetadata(name="A.esp", tags={Tag("Relev")}),
    ])
    assert len(metadata_list) == 1
    assert metadata_list.find_plugin("a.esp").tags == {Tag("Delev"), Tag("Relev")}


def test_erase_and_clear():
    metadata_list = MetadataList.from_entries(
        [_masterlist_entry()], [Message.plain("say", "global")]
    )
    assert metadata_list.erase_plugin("A.esp") is True
    assert metadata_list.erase_plugin("A.esp") is False

    metadata_list.add_plugin(_masterlist_entry())
    metadata_list.clear()
    assert len(metadata_list) == 0
    assert metadata_list.messages == []


def test_choose_content_prefers_language_then_english():
    message = Message("say", (
        MessageContent("Bonjour", "fr"),
        MessageContent("Hello", "en"),
        MessageContent("Hallo", "de"),
    ))
    assert message.choose_content("de").text == "Hallo"
    assert message.choose_content("ru").text == "Hello"
    assert message.choose_content(None).text == "Bonjour"


def test_choose_content_single_entry_always_used():
    message = Message("say", (MessageContent("Hallo", "de"),))
    assert message.choose_content("en").text == "Hallo"


def test_tag_display_name():
    assert Tag("Delev").display_name == "Delev"
    assert Tag("Delev", is_addition=False).display_name == "-Delev"
