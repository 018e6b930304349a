from sylman.services.form_layout import rich_text_field
from sylman.services.form_tree import FormTree, element
from sylman.services.listener_registry import ListenerRegistry
from sylman.services.rich_text import RichTextBridge


def _bridge(*field_ids):
    root = element("form", id="syllabusForm")
    for field_id in field_ids:
        for node in rich_text_field(field_id):
            root.append(node)
    tree = FormTree(root)
    return tree, RichTextBridge(tree, ListenerRegistry())


def test_attach_seeds_from_hidden_and_mirrors_edits():
    tree, bridge = _bridge("courseDescription")
    tree.get("courseDescription").value = "<p>Intro</p>"

    editor = bridge.attach("courseDescription")
    assert editor.get_html() == "<p>Intro</p>"

    editor.set_html("  <p>Updated</p>  ")
    assert tree.get("courseDescription").value == "<p>Updated</p>"


def test_attach_twice_reuses_editor_and_single_handler():
    tree, bridge = _bridge("courseDescription")
    first = bridge.attach("courseDescription")
    second = bridge.attach("courseDescription")
    assert first is second
    assert first.listener_count() == 1
    assert bridge.attached_ids() == ["courseDescription"]


def test_attach_without_container_or_hidden_returns_none():
    tree, bridge = _bridge()
    tree.root.append(element("div", id="editor-orphan"))
    assert bridge.attach("missing") is None
    assert bridge.attach("orphan") is None
    assert bridge.attached_ids() == []


def test_detach_releases_mirror_handler():
    tree, bridge = _bridge("courseDescription")
    editor = bridge.attach("courseDescription")

    assert bridge.detach("courseDescription") is True
    assert editor.listener_count() == 0
    editor.set_html("<p>After detach</p>")
    assert tree.get("courseDescription").value == ""
    assert bridge.detach("courseDescription") is False


def test_sync_all_skips_editor_whose_hidden_node_is_gone():
    tree, bridge = _bridge("courseDescription", "requiredMaterials")
    bridge.attach("courseDescription")
    materials = bridge.attach("requiredMaterials")
    materials.set_html("<p>Textbook</p>")

    tree.get("courseDescription").remove()
    assert bridge.sync_all() == 1
    assert tree.get("requiredMaterials").value == "<p>Textbook</p>"


def test_reseed_pushes_hidden_value_into_editor():
    tree, bridge = _bridge("attendance")
    editor = bridge.attach("attendance")
    tree.get("attendance").value = "<p>Be there</p>"
    assert bridge.reseed("attendance") is True
    assert editor.get_html() == "<p>Be there</p>"
    assert bridge.reseed("other") is False
