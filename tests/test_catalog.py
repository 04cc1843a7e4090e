"""Tests for catalog loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from typedbundle.catalog import (
    DEFAULT_LOCALE,
    Catalog,
    CatalogLoader,
    CatalogSet,
    CatalogSource,
    DictCatalogLoader,
    fallback_chain,
    is_locale_tag,
    normalize_locale,
    parse_properties,
    read_catalog_file,
)
from typedbundle.errors import CatalogFormatError, CatalogNotFoundError


class TestLocales:
    """Locale tag handling."""

    @pytest.mark.parametrize(
        ("tag", "expected"),
        [
            (None, ""),
            ("", ""),
            ("fr", "fr"),
            ("FR", "fr"),
            ("fr-ca", "fr_CA"),
            ("pt_br", "pt_BR"),
            ("zh-hant-tw", "zh_Hant_TW"),
            ("es_419", "es_419"),
        ],
    )
    def test_normalize(self, tag, expected):
        """Test normalization to language_REGION."""
        assert normalize_locale(tag) == expected

    def test_fallback_chain(self):
        """Test most specific first, default last."""
        assert fallback_chain("fr_CA") == ["fr_CA", "fr", ""]
        assert fallback_chain("fr") == ["fr", ""]
        assert fallback_chain(None) == [""]

    @pytest.mark.parametrize(
        ("tag", "expected"),
        [
            ("fr", True),
            ("fr_CA", True),
            ("ast", True),
            ("zh_Hant_TW", True),
            ("es_419", True),
            ("ca_ES_valencia", True),
            ("admin", False),
            ("v2", False),
            ("fr_x", False),
            ("", False),
        ],
    )
    def test_is_locale_tag(self, tag, expected):
        """Test which file-name suffixes count as locale tags."""
        assert is_locale_tag(tag) is expected


class TestParseProperties:
    """Java properties parsing."""

    def test_separators(self):
        """Test '=', ':' and whitespace separators."""
        text = "a=1\nb : 2\nc 3\nd=\n"
        assert parse_properties(text) == {"a": "1", "b": "2", "c": "3", "d": ""}

    def test_comments_and_blank_lines(self):
        """Test comment and blank lines are skipped."""
        text = "# comment\n! other\n\n   \nkey = value\n"
        assert parse_properties(text) == {"key": "value"}

    def test_continuation(self):
        """Test backslash continuation joins lines."""
        text = "long = first \\\n     second\nnext = x\n"
        assert parse_properties(text) == {"long": "first second", "next": "x"}

    def test_escapes(self):
        """Test escape sequences in keys and values."""
        text = "tab\\ key = a\\tb\nunicode = caf\\u00e9\nslash = c:\\\\temp\n"
        result = parse_properties(text)
        assert result["tab key"] == "a\tb"
        assert result["unicode"] == "café"
        assert result["slash"] == "c:\\temp"

    def test_braces_preserved(self):
        """Test placeholder braces pass through untouched."""
        result = parse_properties("greeting = Hello {0}, {{literal}}\n")
        assert result["greeting"] == "Hello {0}, {{literal}}"

    def test_duplicate_key_keeps_first_position(self):
        """Test a repeated key takes the last value at its first position."""
        result = parse_properties("a = 1\nb = 2\na = 3\n")
        assert list(result) == ["a", "b"]
        assert result["a"] == "3"


class TestReadCatalogFile:
    """Format dispatch by extension."""

    def test_json_nested(self, tmp_path: Path):
        """Test nested JSON objects flatten with dots."""
        path = tmp_path / "messages.json"
        path.write_text(
            '{"welcome": {"message": "Hello {0}"}, "count": 3, "empty": null}',
            encoding="utf-8",
        )
        assert read_catalog_file(path) == {
            "welcome.message": "Hello {0}",
            "count": "3",
            "empty": "",
        }

    def test_yaml(self, tmp_path: Path):
        """Test YAML catalogs."""
        path = tmp_path / "messages.yaml"
        path.write_text(
            "welcome:\n  message: 'Hello {name}'\ntitle: Inventory\n",
            encoding="utf-8",
        )
        assert read_catalog_file(path) == {
            "welcome.message": "Hello {name}",
            "title": "Inventory",
        }

    def test_empty_files(self, tmp_path: Path):
        """Test empty JSON and YAML files are empty catalogs."""
        (tmp_path / "a.json").write_text("", encoding="utf-8")
        (tmp_path / "b.yml").write_text("", encoding="utf-8")
        assert read_catalog_file(tmp_path / "a.json") == {}
        assert read_catalog_file(tmp_path / "b.yml") == {}

    def test_invalid_json(self, tmp_path: Path):
        """Test a syntax error surfaces as CatalogFormatError."""
        path = tmp_path / "messages.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(CatalogFormatError) as exc_info:
            read_catalog_file(path, "messages")
        assert exc_info.value.path == path
        assert exc_info.value.bundle == "messages"

    def test_non_mapping(self, tmp_path: Path):
        """Test a top-level list is rejected."""
        path = tmp_path / "messages.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(CatalogFormatError, match="mapping"):
            read_catalog_file(path)

    def test_invalid_utf8(self, tmp_path: Path):
        """Test undecodable bytes are a format error."""
        path = tmp_path / "messages.properties"
        path.write_bytes(b"key = \xff\xfe\n")
        with pytest.raises(CatalogFormatError):
            read_catalog_file(path)


class TestCatalog:
    """Catalog value object."""

    def test_read_only(self):
        """Test messages cannot be mutated."""
        catalog = Catalog("messages", messages={"a": "1"})
        with pytest.raises(TypeError):
            catalog.messages["b"] = "2"  # type: ignore[index]

    def test_empty_key_rejected(self):
        """Test an empty key is a format error."""
        with pytest.raises(CatalogFormatError, match="empty message key"):
            Catalog("messages", messages={"": "x"})

    def test_labels(self):
        """Test default and variant labels."""
        assert Catalog("m").label == "default"
        assert Catalog("m").is_default
        assert Catalog("m", "fr").label == "fr"

    def test_overlay(self):
        """Test variant values win and default order is kept."""
        default = Catalog("m", messages={"a": "A", "b": "B"})
        french = Catalog("m", "fr", messages={"b": "Bé"})
        merged = default.overlay(french)
        assert merged.locale == "fr"
        assert list(merged) == ["a", "b"]
        assert merged.get("a") == "A"
        assert merged.get("b") == "Bé"

    def test_mapping_protocol(self):
        """Test membership, length and key order."""
        catalog = Catalog("m", messages={"z": "1", "a": "2"})
        assert "z" in catalog
        assert "missing" not in catalog
        assert len(catalog) == 2
        assert catalog.keys() == ["z", "a"]
        assert catalog.get("missing") is None


class TestCatalogLoader:
    """Directory-backed loader."""

    def test_load_default(self, catalog_dir: Path):
        """Test the default catalog keeps file order."""
        catalog = CatalogLoader(catalog_dir).load("messages")
        assert catalog.locale == DEFAULT_LOCALE
        assert catalog.keys() == ["welcome.message", "goodbye.message", "app.title"]
        assert catalog.source == catalog_dir / "messages.properties"

    def test_find_variant(self, catalog_dir: Path):
        """Test loading a variant by normalized tag."""
        catalog = CatalogLoader(catalog_dir).find("messages", "fr-ca")
        assert catalog is not None
        assert catalog.locale == "fr_CA"
        assert catalog.get("goodbye.message") == "Salut {0}"

    def test_find_missing_returns_none(self, catalog_dir: Path):
        """Test an absent variant is not an error."""
        assert CatalogLoader(catalog_dir).find("messages", "de") is None

    def test_load_missing_raises(self, catalog_dir: Path):
        """Test an absent catalog lists the searched paths."""
        with pytest.raises(CatalogNotFoundError) as exc_info:
            CatalogLoader(catalog_dir).load("other")
        error = exc_info.value
        assert error.bundle == "other"
        assert str(catalog_dir / "other.properties") in error.searched

    def test_available_locales(self, catalog_dir: Path):
        """Test variant discovery from file names."""
        (catalog_dir / "messages_de.json").write_text("{}", encoding="utf-8")
        (catalog_dir / "messages_notes.txt").write_text("x", encoding="utf-8")
        (catalog_dir / "other_es.properties").write_text("", encoding="utf-8")
        loader = CatalogLoader(catalog_dir)
        assert loader.available_locales("messages") == ["de", "fr", "fr_CA"]

    def test_available_locales_missing_directory(self, tmp_path: Path):
        """Test a missing directory has no locales."""
        assert CatalogLoader(tmp_path / "nope").available_locales("messages") == []

    def test_load_set(self, catalog_dir: Path):
        """Test the whole bundle is loaded."""
        catalogs = CatalogLoader(catalog_dir).load_set("messages")
        assert catalogs.bundle == "messages"
        assert catalogs.locales == ["fr", "fr_CA"]
        assert catalogs.variant("fr-CA") is not None
        assert catalogs.variant("de") is None

    def test_extension_preference(self, tmp_path: Path):
        """Test properties files win over JSON for the same catalog."""
        (tmp_path / "messages.properties").write_text("a = props\n", encoding="utf-8")
        (tmp_path / "messages.json").write_text('{"a": "json"}', encoding="utf-8")
        assert CatalogLoader(tmp_path).load("messages").get("a") == "props"

    def test_sibling_bundle_not_a_locale(self, catalog_dir: Path):
        """Test messages_admin is another bundle, not a locale of messages."""
        (catalog_dir / "messages_admin.properties").write_text(
            "welcome.message = Admin {0} {1} {2}\n", encoding="utf-8"
        )
        loader = CatalogLoader(catalog_dir)
        assert loader.available_locales("messages") == ["fr", "fr_CA"]
        assert loader.find("messages", "admin") is None
        assert loader.load_set("messages").locales == ["fr", "fr_CA"]
        assert loader.load("messages_admin").get("welcome.message") == "Admin {0} {1} {2}"

    def test_is_catalog_source(self, tmp_path: Path):
        """Test both loaders satisfy the source protocol."""
        assert isinstance(CatalogLoader(tmp_path), CatalogSource)
        assert isinstance(DictCatalogLoader({}), CatalogSource)


class TestDictCatalogLoader:
    """In-memory loader."""

    def test_default_alias(self):
        """Test 'default' names the default catalog."""
        loader = DictCatalogLoader({"m": {"default": {"a": "A"}, "fr": {"a": "Á"}}})
        assert loader.load("m").get("a") == "A"
        assert loader.available_locales("m") == ["fr"]

    def test_from_dict(self, positional_catalogs):
        """Test CatalogSet construction from dictionaries."""
        catalogs = CatalogSet.from_dict("messages", positional_catalogs)
        assert catalogs.default.keys() == ["welcome.message", "goodbye.message", "app.title"]
        assert catalogs.locales == ["fr"]

    def test_missing_default(self):
        """Test a bundle without a default catalog cannot be loaded."""
        with pytest.raises(CatalogNotFoundError):
            CatalogSet.from_dict("messages", {"fr": {"a": "b"}})
