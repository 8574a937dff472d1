"""Tests for the RESX document editor."""
import pytest

from easyresx.parsers.resx import ResxDocument, ResxError, ResxInsert, is_resx_file, parse_resx

ENTRIES = [
    ("Cancel", "Cancel"),
    ("Hello", "Hello & welcome"),
    ("Save", "Save"),
    ("Title", "<b>EasyResX</b>"),
]


@pytest.fixture
def resx(write_resx):
    return write_resx("Strings.resx", ENTRIES)


def _normalized(path):
    """Rewrite the file once so later saves can be compared byte for byte."""
    ResxDocument.load(path).save()
    return path.read_bytes()


class TestResxRead:
    def test_entries_in_storage_order(self, resx):
        doc = ResxDocument.load(resx)
        assert doc.keys() == ["Cancel", "Hello", "Save", "Title"]
        assert doc.entries()["Hello"] == "Hello & welcome"
        assert doc.entries()["Title"] == "<b>EasyResX</b>"
        assert len(doc) == 4

    def test_parse_resx(self, resx):
        assert list(parse_resx(resx)) == ["Cancel", "Hello", "Save", "Title"]

    def test_position_and_value(self, resx):
        doc = ResxDocument.load(resx)
        assert doc.position_of("Save") == 2
        assert doc.position_of("Missing") is None
        assert doc.get_value("Missing") is None
        assert "Hello" in doc

    def test_not_resx_root(self, tmp_path):
        path = tmp_path / "other.resx"
        path.write_text('<?xml version="1.0"?><project><data name="a"/></project>', "utf-8")
        with pytest.raises(ResxError):
            ResxDocument.load(path)

    def test_invalid_xml(self, tmp_path):
        path = tmp_path / "broken.resx"
        path.write_text("<root><data name='a'>", "utf-8")
        with pytest.raises(ResxError):
            ResxDocument.load(path)

    def test_doctype_rejected(self, tmp_path):
        path = tmp_path / "evil.resx"
        path.write_text(
            '<?xml version="1.0"?>\n'
            '<!DOCTYPE root [<!ENTITY xxe SYSTEM "file:///etc/passwd">]>\n'
            '<root><data name="a"><value>&xxe;</value></data></root>',
            "utf-8",
        )
        with pytest.raises(ResxError):
            ResxDocument.load(path)

    def test_is_resx_file(self, resx, tmp_path):
        assert is_resx_file(resx)
        other = tmp_path / "notes.txt"
        other.write_text("<root>data name=</root>", "utf-8")
        assert not is_resx_file(other)


class TestResxEdit:
    def test_remove_returns_position(self, resx):
        doc = ResxDocument.load(resx)
        assert doc.remove("Hello") == 1
        assert doc.keys() == ["Cancel", "Save", "Title"]
        assert doc.remove("Hello") is None

    def test_remove_missing_leaves_document_unmodified(self, resx):
        doc = ResxDocument.load(resx)
        assert doc.remove("Missing") is None
        assert not doc.modified

    @pytest.mark.parametrize("key", ["Cancel", "Hello", "Title"])
    def test_remove_then_insert_is_byte_identical(self, resx, key):
        original = _normalized(resx)
        doc = ResxDocument.load(resx)
        value = doc.get_value(key)
        position = doc.remove(key)
        doc.save()
        assert resx.read_bytes() != original

        doc = ResxDocument.load(resx)
        doc.insert(key, value, position)
        doc.save()
        assert resx.read_bytes() == original

    def test_insert_existing_key_raises(self, resx):
        doc = ResxDocument.load(resx)
        with pytest.raises(ResxError):
            doc.insert("Save", "again")
        with pytest.raises(ResxError):
            doc.insert("", "empty")

    def test_insert_past_end_appends(self, resx):
        doc = ResxDocument.load(resx)
        assert doc.insert("Zoom", "Zoom", 99) == 4
        assert doc.keys()[-1] == "Zoom"

    def test_insert_into_empty_root(self, tmp_path):
        path = tmp_path / "Empty.resx"
        path.write_text('<?xml version="1.0" encoding="utf-8"?>\n<root></root>\n', "utf-8")
        doc = ResxDocument.load(path)
        assert doc.insert("First", "1") == 0
        doc.save()
        assert parse_resx(path) == {"First": "1"}

    def test_remove_many_and_insert_many_restore_order(self, resx):
        original = _normalized(resx)
        doc = ResxDocument.load(resx)
        values = doc.entries()
        positions = doc.remove_many(["Title", "Cancel", "Save"])
        assert positions == {"Cancel": 0, "Save": 2, "Title": 3}
        assert doc.keys() == ["Hello"]
        doc.save()

        doc = ResxDocument.load(resx)
        # Order given here does not matter; positions do.
        doc.insert_many([ResxInsert(k, values[k], p) for k, p in reversed(list(positions.items()))])
        doc.save()
        assert resx.read_bytes() == original

    def test_set_value(self, resx):
        doc = ResxDocument.load(resx)
        doc.set_value("Save", "Spara")
        doc.save()
        assert parse_resx(resx)["Save"] == "Spara"

    def test_set_value_appends_missing_key(self, resx):
        doc = ResxDocument.load(resx)
        doc.set_value("New", "value")
        assert doc.keys()[-1] == "New"
        assert doc.get_value("New") == "value"

    def test_rename_in_place(self, resx):
        doc = ResxDocument.load(resx)
        assert doc.rename("Hello", "Greeting")
        assert doc.keys() == ["Cancel", "Greeting", "Save", "Title"]
        assert doc.get_value("Greeting") == "Hello & welcome"

    def test_rename_collision_raises(self, resx):
        doc = ResxDocument.load(resx)
        with pytest.raises(ResxError):
            doc.rename("Hello", "Save")
        assert doc.keys() == ["Cancel", "Hello", "Save", "Title"]

    def test_rename_missing_key(self, resx):
        doc = ResxDocument.load(resx)
        assert doc.rename("Missing", "Other") is False
        assert not doc.modified

    def test_save_keeps_comments_and_schema_prefix(self, resx):
        doc = ResxDocument.load(resx)
        doc.set_value("Save", "Spara")
        doc.save()
        text = resx.read_text("utf-8")
        assert "Microsoft ResX Schema" in text
        assert "<xsd:schema" in text
        assert "<resheader" in text
        assert 'xml:space="preserve"' in text

    @pytest.mark.parametrize("text", ["a\x01b", "tab\x0bbed", "\x00", "\uFFFE"])
    def test_characters_outside_xml_rejected(self, resx, text):
        doc = ResxDocument.load(resx)
        with pytest.raises(ResxError):
            doc.set_value("Save", text)
        with pytest.raises(ResxError):
            doc.insert("New", text)
        with pytest.raises(ResxError):
            doc.rename("Save", text)
        assert not doc.modified
        assert doc.get_value("Save") == "Save"

    def test_allowed_whitespace_and_astral_characters(self, resx):
        doc = ResxDocument.load(resx)
        doc.set_value("Save", "line\r\nnext\ttab \U0001F600")
        doc.save()
        assert "\U0001F600" in parse_resx(resx)["Save"]
