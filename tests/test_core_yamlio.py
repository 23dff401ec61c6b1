"""Tests for core/yamlio.py YAML helpers."""

import tempfile
import unittest
from pathlib import Path

from core.yamlio import dump_config, extract_records, load_config, load_records


class TestLoadConfig(unittest.TestCase):
    """Tests for load_config function."""

    def test_load_valid_yaml(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.yaml"
            path.write_text("key: value\nnumber: 42\n", encoding="utf-8")
            result = load_config(str(path))
            self.assertEqual(result, {"key": "value", "number": 42})

    def test_load_missing_file_returns_empty(self):
        result = load_config("/nonexistent/path/config.yaml")
        self.assertEqual(result, {})

    def test_load_none_path_returns_empty(self):
        result = load_config(None)
        self.assertEqual(result, {})

    def test_load_empty_path_returns_empty(self):
        result = load_config("")
        self.assertEqual(result, {})

    def test_load_empty_file_returns_empty(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "empty.yaml"
            path.write_text("", encoding="utf-8")
            result = load_config(str(path))
            self.assertEqual(result, {})

    def test_load_whitespace_only_file_returns_empty(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "whitespace.yaml"
            path.write_text("   \n\n  \t  ", encoding="utf-8")
            result = load_config(str(path))
            self.assertEqual(result, {})

    def test_load_nested_structure(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "nested.yaml"
            content = """
parent:
  child1: value1
  child2:
    - item1
    - item2
"""
            path.write_text(content, encoding="utf-8")
            result = load_config(str(path))
            self.assertEqual(result["parent"]["child1"], "value1")
            self.assertEqual(result["parent"]["child2"], ["item1", "item2"])

    def test_load_with_unicode(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "unicode.yaml"
            path.write_text("message: こんにちは\n", encoding="utf-8")
            result = load_config(str(path))
            self.assertEqual(result, {"message": "こんにちは"})

    def test_load_yaml_null_returns_empty(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "null.yaml"
            path.write_text("~\n", encoding="utf-8")  # YAML null
            result = load_config(str(path))
            self.assertEqual(result, {})


class TestDumpConfig(unittest.TestCase):
    """Tests for dump_config function."""

    def test_dump_creates_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "output.yaml"
            dump_config(str(path), {"key": "value"})
            self.assertTrue(path.exists())

    def test_dump_content_readable(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "output.yaml"
            data = {"name": "test", "count": 5}
            dump_config(str(path), data)
            result = load_config(str(path))
            self.assertEqual(result, data)

    def test_dump_creates_parent_directories(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "nested" / "dir" / "config.yaml"
            dump_config(str(path), {"created": True})
            self.assertTrue(path.exists())

    def test_dump_preserves_order(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "ordered.yaml"
            # Using dict with specific order (Python 3.7+ preserves insertion order)
            data = {"first": 1, "second": 2, "third": 3}
            dump_config(str(path), data)
            content = path.read_text(encoding="utf-8")
            # Check that keys appear in order
            first_pos = content.find("first")
            second_pos = content.find("second")
            third_pos = content.find("third")
            self.assertLess(first_pos, second_pos)
            self.assertLess(second_pos, third_pos)

    def test_dump_unicode_content(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "unicode.yaml"
            data = {"greeting": "Привет мир"}
            dump_config(str(path), data)
            result = load_config(str(path))
            self.assertEqual(result["greeting"], "Привет мир")

    def test_dump_nested_structure(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "nested.yaml"
            data = {
                "level1": {
                    "level2": {
                        "value": "deep"
                    }
                },
                "list": [1, 2, 3]
            }
            dump_config(str(path), data)
            result = load_config(str(path))
            self.assertEqual(result, data)

    def test_dump_overwrites_existing(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "overwrite.yaml"
            dump_config(str(path), {"original": True})
            dump_config(str(path), {"updated": True})
            result = load_config(str(path))
            self.assertNotIn("original", result)
            self.assertIn("updated", result)


class TestExtractRecords(unittest.TestCase):
    """Tests for record extraction from loaded documents."""

    def test_keyed_list(self):
        doc = {"sessions": [{"sessionid": "a"}, {"sessionid": "b"}]}
        records = extract_records(doc)
        self.assertEqual([r["sessionid"] for r in records], ["a", "b"])
        self.assertIs(records[0], doc["sessions"][0])

    def test_bare_list_and_single_mapping(self):
        self.assertEqual(extract_records([{"a": 1}]), [{"a": 1}])
        self.assertEqual(extract_records({"a": 1}), [{"a": 1}])
        self.assertEqual(extract_records({}), [])
        self.assertEqual(extract_records({"sessions": None}), [])

    def test_bad_shapes(self):
        with self.assertRaises(ValueError):
            extract_records({"sessions": "nope"})
        with self.assertRaises(ValueError):
            extract_records({"sessions": [{"a": 1}, "b"]})
        with self.assertRaises(ValueError):
            extract_records(42)

    def test_load_records_from_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "sessions.yaml"
            path.write_text("sessions:\n  - sessionid: s-1\n    starttime: '15:00'\n", encoding="utf-8")
            self.assertEqual(load_records(str(path)), [{"sessionid": "s-1", "starttime": "15:00"}])
            self.assertEqual(load_records(str(Path(tmp) / "missing.yaml")), [])


if __name__ == "__main__":
    unittest.main()
