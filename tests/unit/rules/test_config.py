"""Unit tests for timer_guard.rules.config module."""

import json

import pytest

from timer_guard.rules.base import Severity
from timer_guard.rules.config import (
    CategoryConfig,
    RuleConfig,
    RuleEngineConfig,
    RuleEngineConfigLoader,
    get_default_config,
)

RULE_ID = "TIMERS.CONSOLE_TIME_PAIRS"


class TestRuleConfig:
    """Tests for RuleConfig model."""

    def test_rule_config_defaults(self):
        config = RuleConfig()
        assert config.enabled is True
        assert config.severity_override is None
        assert config.parameters == {}

    def test_rule_config_from_json_keys(self):
        config = RuleConfig.model_validate(
            {
                "enabled": False,
                "severity": "HIGH",
                "parameters": {"scope": "SameFunction"},
            }
        )
        assert config.enabled is False
        assert config.severity_override is Severity.HIGH
        assert config.parameters == {"scope": "SameFunction"}

    def test_merge_combines_parameters(self):
        base = RuleConfig(
            severity_override="low",
            parameters={"objectNames": ["perf"], "scope": "File"},
        )
        merged = base.merge(RuleConfig(parameters={"scope": "SameFunction"}))
        assert merged.parameters == {"objectNames": ["perf"], "scope": "SameFunction"}
        assert merged.severity_override is Severity.LOW
        assert merged.enabled is True

    def test_merge_keeps_disabled_when_overlay_omits_enabled(self):
        base = RuleConfig.model_validate({"enabled": False})
        merged = base.merge(RuleConfig.model_validate({"parameters": {"a": 1}}))
        assert merged.enabled is False
        assert merged.parameters == {"a": 1}

    def test_merge_takes_explicit_enabled(self):
        base = RuleConfig.model_validate({"enabled": False})
        merged = base.merge(RuleConfig.model_validate({"enabled": True}))
        assert merged.enabled is True


class TestRuleEngineConfig:
    """Tests for RuleEngineConfig model."""

    def test_defaults(self):
        config = RuleEngineConfig()
        assert config.enabled is True
        assert config.fail_on_severity == Severity.MEDIUM
        assert config.continue_on_error is True

    def test_is_rule_enabled(self):
        config = RuleEngineConfig(
            categories={"timers": CategoryConfig(enabled=False)},
            rules={"OTHER.RULE": RuleConfig(enabled=False)},
        )
        assert config.is_rule_enabled(RULE_ID, "timers") is False
        assert config.is_rule_enabled("OTHER.RULE") is False
        assert config.is_rule_enabled("THIRD.RULE") is True

        config.enabled = False
        assert config.is_rule_enabled("THIRD.RULE") is False

    def test_get_rule_config_default(self):
        assert RuleEngineConfig().get_rule_config("R.Y") == RuleConfig()

    def test_set_rule_parameters_keeps_other_keys(self):
        config = RuleEngineConfig(
            rules={"R.X": RuleConfig(severity_override="high", parameters={"a": 1})}
        )
        config.set_rule_parameters("R.X", b=2)
        assert config.rules["R.X"].parameters == {"a": 1, "b": 2}
        assert config.rules["R.X"].severity_override is Severity.HIGH

    def test_category_severity(self):
        config = RuleEngineConfig(
            categories={"timers": CategoryConfig(default_severity="HIGH")}
        )
        assert config.get_category_severity("timers") is Severity.HIGH
        assert config.get_category_severity("other") is None

    def test_from_dict(self):
        config = RuleEngineConfig.from_dict(
            {
                "failOnSeverity": "LOW",
                "continueOnError": False,
                "categories": {"timers": {"enabled": True, "defaultSeverity": "high"}},
                "rules": {
                    RULE_ID: {"parameters": {"objectNames": ["console", "perf"]}}
                },
            }
        )
        assert config.fail_on_severity is Severity.LOW
        assert config.continue_on_error is False
        assert config.categories["timers"].default_severity is Severity.HIGH
        assert config.get_rule_config(RULE_ID).parameters == {
            "objectNames": ["console", "perf"]
        }

    def test_from_dict_ignores_unknown_keys(self):
        config = RuleEngineConfig.from_dict({"version": "1", "triggers": []})
        assert config == RuleEngineConfig()

    def test_from_dict_rejects_unknown_severity(self):
        with pytest.raises(ValueError, match="failOnSeverity"):
            RuleEngineConfig.from_dict({"failOnSeverity": "urgent"})

    @pytest.mark.parametrize(
        "data",
        [
            [1, 2],
            {"failOnSeverity": 3},
            {"rules": []},
            {"rules": {RULE_ID: {"severity": 5}}},
            {"rules": {RULE_ID: {"parameters": ["scope"]}}},
            {"categories": {"timers": "off"}},
        ],
    )
    def test_from_dict_rejects_wrong_types(self, data):
        with pytest.raises(ValueError):
            RuleEngineConfig.from_dict(data)

    def test_merge(self):
        base = RuleEngineConfig(
            rules={"R.X": RuleConfig(parameters={"scope": "File", "objectNames": ["a"]})}
        )
        other = RuleEngineConfig(
            fail_on_severity=Severity.HIGH,
            rules={"R.X": RuleConfig(parameters={"scope": "SameFunction"})},
        )
        merged = base.merge(other)
        assert merged.fail_on_severity is Severity.HIGH
        assert merged.rules["R.X"].parameters == {
            "scope": "SameFunction",
            "objectNames": ["a"],
        }

    def test_merge_only_applies_keys_the_overlay_sets(self):
        base = RuleEngineConfig.from_dict(
            {
                "enabled": False,
                "failOnSeverity": "critical",
                "continueOnError": False,
                "categories": {"timers": {"defaultSeverity": "low"}},
            }
        )
        merged = base.merge(
            RuleEngineConfig.from_dict({"categories": {"timers": {"enabled": False}}})
        )
        assert merged.enabled is False
        assert merged.fail_on_severity is Severity.CRITICAL
        assert merged.continue_on_error is False
        assert merged.categories["timers"].enabled is False
        assert merged.categories["timers"].default_severity is Severity.LOW


class TestRuleEngineConfigLoader:
    """Tests for hierarchical config loading."""

    def test_load_defaults_without_files(self, tmp_path):
        config = RuleEngineConfigLoader(tmp_path).load()
        assert config == get_default_config()

    def test_project_and_local_layers(self, tmp_path, write_config):
        write_config(
            tmp_path,
            {
                "failOnSeverity": "high",
                "rules": {
                    RULE_ID: {"parameters": {"objectNames": ["perf"], "scope": "File"}}
                },
            },
        )
        write_config(
            tmp_path,
            {"rules": {RULE_ID: {"parameters": {"scope": "SameFunction"}}}},
            local=True,
        )

        config = RuleEngineConfigLoader(tmp_path).load()
        # The local file does not restate failOnSeverity, so the project's wins
        assert config.fail_on_severity is Severity.HIGH
        assert config.get_rule_config(RULE_ID).parameters == {
            "objectNames": ["perf"],
            "scope": "SameFunction",
        }

    def test_local_parameters_keep_project_settings(self, tmp_path, write_config):
        write_config(
            tmp_path,
            {"failOnSeverity": "critical", "rules": {RULE_ID: {"enabled": False}}},
        )
        write_config(
            tmp_path,
            {"rules": {RULE_ID: {"parameters": {"scope": "File"}}}},
            local=True,
        )

        config = RuleEngineConfigLoader(tmp_path).load()
        assert config.fail_on_severity is Severity.CRITICAL
        assert config.is_rule_enabled(RULE_ID, "timers") is False
        assert config.get_rule_config(RULE_ID).parameters == {"scope": "File"}

    def test_global_layer(self, tmp_path):
        global_dir = RuleEngineConfigLoader.GLOBAL_CONFIG_DIR
        (global_dir / RuleEngineConfigLoader.CONFIG_FILENAME).write_text(
            json.dumps({"failOnSeverity": "critical"})
        )
        config = RuleEngineConfigLoader(tmp_path).load()
        assert config.fail_on_severity is Severity.CRITICAL

    def test_malformed_file_is_skipped(self, tmp_path, caplog):
        path = tmp_path / ".timer-guard" / "timer-guard.config.json"
        path.parent.mkdir()
        path.write_text("{not json")

        config = RuleEngineConfigLoader(tmp_path).load()
        assert config == get_default_config()
        assert "Could not load config" in caplog.text

    def test_wrongly_typed_file_is_skipped(self, tmp_path, write_config, caplog):
        write_config(tmp_path, {"failOnSeverity": 3})

        config = RuleEngineConfigLoader(tmp_path).load()
        assert config == get_default_config()
        assert "Could not load config" in caplog.text
        assert "failOnSeverity" in caplog.text

    def test_extra_file_errors_propagate(self, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("[1, 2]")
        with pytest.raises(ValueError, match="bad.json"):
            RuleEngineConfigLoader(tmp_path).load(extra_file=bad)

    def test_extra_file_applies_last(self, tmp_path, write_config):
        write_config(tmp_path, {"failOnSeverity": "high"})
        extra = tmp_path / "ci.json"
        extra.write_text(json.dumps({"failOnSeverity": "low"}))
        config = RuleEngineConfigLoader(tmp_path).load(extra_file=extra)
        assert config.fail_on_severity is Severity.LOW


def test_default_config_has_timers_category():
    config = get_default_config()
    assert config.categories["timers"].default_severity is Severity.MEDIUM
