"""
Test Script Loader Module
=========================

Unit tests for loading rules, reflections and messages from YAML.
"""

import pytest
import yaml
from pathlib import Path
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.exceptions import RuleSetError
from rules.loader import (
    available_languages, clear_script_cache, load_messages, load_reflections,
    load_rule_set, load_script
)
from rules.models import FALLBACK_KEYWORD


MINIMAL_RULES = {
    "rules": [
        {"keyword": "hello", "priority": 1,
         "patterns": [{"decomposition": "(.*)", "reassemblies": ["Hi there."]}]},
        {"keyword": "@none", "priority": 0,
         "patterns": [{"decomposition": "(.*)", "reassemblies": ["Go on."]}]},
    ]
}


def write_yaml(path: Path, data) -> Path:
    path.write_text(yaml.safe_dump(data, allow_unicode=True), encoding="utf-8")
    return path


@pytest.fixture
def script_dir(tmp_path):
    """A complete custom script for language 'xx'."""
    write_yaml(tmp_path / "rules_xx.yaml", MINIMAL_RULES)
    write_yaml(tmp_path / "reflections_xx.yaml", {"reflections": {"i": "you"}})
    write_yaml(tmp_path / "messages_xx.yaml", {"greetings": ["Hey."], "goodbye": "Later."})
    yield tmp_path
    clear_script_cache()


class TestLoadRuleSet:
    """Tests for load_rule_set."""

    def test_load_valid(self, tmp_path):
        """Test a valid file loads in file order."""
        rules = load_rule_set(write_yaml(tmp_path / "rules.yaml", MINIMAL_RULES))
        assert [rule.keyword for rule in rules] == ["hello", FALLBACK_KEYWORD]
        assert rules.fallback_index == 1

    def test_missing_file(self, tmp_path):
        """Test missing file raises error."""
        with pytest.raises(RuleSetError):
            load_rule_set(tmp_path / "absent.yaml")

    def test_invalid_yaml(self, tmp_path):
        """Test unparseable file raises error."""
        path = tmp_path / "rules.yaml"
        path.write_text("rules: [unclosed")
        with pytest.raises(RuleSetError):
            load_rule_set(path)

    def test_missing_rules_key(self, tmp_path):
        """Test file without a 'rules' section raises error."""
        with pytest.raises(RuleSetError):
            load_rule_set(write_yaml(tmp_path / "rules.yaml", {"other": []}))

    def test_empty_rules(self, tmp_path):
        """Test empty rule list raises error."""
        with pytest.raises(RuleSetError):
            load_rule_set(write_yaml(tmp_path / "rules.yaml", {"rules": []}))

    def test_missing_fallback(self, tmp_path):
        """Test scripts must define a fallback rule."""
        data = {"rules": MINIMAL_RULES["rules"][:1]}
        path = write_yaml(tmp_path / "rules.yaml", data)
        with pytest.raises(RuleSetError):
            load_rule_set(path)
        assert load_rule_set(path, require_fallback=False).fallback is None

    def test_empty_reassemblies(self, tmp_path):
        """Test a pattern without reassemblies raises error naming the file."""
        data = {"rules": [
            {"keyword": "x", "priority": 1,
             "patterns": [{"decomposition": "(.*)", "reassemblies": []}]},
        ]}
        path = write_yaml(tmp_path / "rules.yaml", data)
        with pytest.raises(RuleSetError) as exc_info:
            load_rule_set(path)
        assert exc_info.value.details["path"] == str(path)

    def test_bad_priority(self, tmp_path):
        """Test non-integer priority raises error."""
        data = {"rules": [
            {"keyword": "x", "priority": "high",
             "patterns": [{"decomposition": "(.*)", "reassemblies": ["y"]}]},
        ]}
        with pytest.raises(RuleSetError):
            load_rule_set(write_yaml(tmp_path / "rules.yaml", data))


class TestLoadReflections:
    """Tests for load_reflections."""

    def test_load(self, tmp_path):
        """Test reflections load into a table."""
        table = load_reflections(write_yaml(tmp_path / "r.yaml",
                                            {"reflections": {"My": "your"}}))
        assert table.reflect("my car") == "your car"

    def test_non_string_value(self, tmp_path):
        """Test non-string substitutes are rejected."""
        with pytest.raises(RuleSetError):
            load_reflections(write_yaml(tmp_path / "r.yaml", {"reflections": {"i": 1}}))

    def test_not_a_mapping(self, tmp_path):
        """Test a list of reflections is rejected."""
        with pytest.raises(RuleSetError):
            load_reflections(write_yaml(tmp_path / "r.yaml", {"reflections": ["i"]}))


class TestLoadMessages:
    """Tests for load_messages."""

    def test_defaults_filled(self, tmp_path):
        """Test optional keys fall back to defaults."""
        messages = load_messages(write_yaml(tmp_path / "m.yaml", {"greetings": ["Hi."]}))
        assert messages.greetings == ("Hi.",)
        assert "quit" in messages.quit_words
        assert messages.crash == ()

    def test_greetings_required(self, tmp_path):
        """Test missing greetings raises error."""
        with pytest.raises(RuleSetError):
            load_messages(write_yaml(tmp_path / "m.yaml", {"goodbye": "Bye."}))

    def test_list_fields_validated(self, tmp_path):
        """Test quit_words must be a list."""
        with pytest.raises(RuleSetError):
            load_messages(write_yaml(tmp_path / "m.yaml",
                                     {"greetings": ["Hi."], "quit_words": "quit"}))


class TestLoadScript:
    """Tests for whole-script loading."""

    def test_custom_directory(self, script_dir):
        """Test a script loads from a custom directory."""
        script = load_script("xx", str(script_dir))
        assert script.language == "xx"
        assert len(script.rules) == 2
        assert script.messages.goodbye == "Later."

    def test_cached(self, script_dir):
        """Test repeated loads return the same script."""
        assert load_script("xx", str(script_dir)) is load_script("xx", str(script_dir))

    def test_missing_language(self, script_dir):
        """Test unknown language raises error."""
        with pytest.raises(RuleSetError):
            load_script("zz", str(script_dir))

    def test_available_languages(self, script_dir):
        """Test languages are discovered from rules files."""
        assert available_languages(str(script_dir)) == ["xx"]

    @pytest.mark.parametrize("language", ["us", "fr"])
    def test_bundled_scripts(self, language):
        """Test the shipped scripts load and are well formed."""
        script = load_script(language)
        assert script.rules.fallback is not None
        assert len(script.reflections) > 0
        assert script.messages.greetings
        assert script.messages.crash
        assert any(rule.insult for rule in script.rules)

    def test_bundled_languages(self):
        """Test both shipped languages are discovered."""
        assert available_languages() == ["fr", "us"]
