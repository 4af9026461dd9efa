"""Tests for config schema, env expansion and the YAML loader."""

from __future__ import annotations

from typing import Any, Dict

import pytest
from pydantic import ValidationError

from middleman.config.env import expand_env_vars
from middleman.config.loader import load_config, parse_config
from middleman.config.schema import (
    DispatcherSettings,
    LoggingSettings,
    MiddlemanConfig,
    PipelineConfig,
)
from middleman.errors import ConfigurationError


def _write(tmp_path, name: str, text: str) -> str:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return str(path)


# ── Env expansion ────────────────────────────────────────────────────────


class TestExpandEnvVars:
    def test_expands_set_variable(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MM_TARGET", "app.units:auth")
        assert expand_env_vars("${MM_TARGET}") == "app.units:auth"

    def test_unset_left_unchanged(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("MM_UNSET_VAR", raising=False)
        assert expand_env_vars("x-${MM_UNSET_VAR}") == "x-${MM_UNSET_VAR}"

    def test_default_used_when_unset(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("MM_UNSET_VAR", raising=False)
        assert expand_env_vars("${MM_UNSET_VAR:-DEBUG}") == "DEBUG"

    def test_default_ignored_when_set(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MM_LEVEL", "ERROR")
        assert expand_env_vars("${MM_LEVEL:-DEBUG}") == "ERROR"

    def test_walks_nested_structures(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MM_NAME", "auth")
        data = {"a": ["${MM_NAME}", 1, {"b": "${MM_NAME}"}], "c": None}
        assert expand_env_vars(data) == {"a": ["auth", 1, {"b": "auth"}], "c": None}

    def test_does_not_mutate_input(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MM_NAME", "auth")
        data = {"a": "${MM_NAME}"}
        expand_env_vars(data)
        assert data == {"a": "${MM_NAME}"}


# ── Schema ───────────────────────────────────────────────────────────────


class TestLoggingSettings:
    def test_defaults(self) -> None:
        s = LoggingSettings()
        assert s.level == "INFO"
        assert s.file is None

    def test_level_normalised(self) -> None:
        assert LoggingSettings(level="debug").level == "DEBUG"

    def test_invalid_level(self) -> None:
        with pytest.raises(ValidationError):
            LoggingSettings(level="loud")


class TestDispatcherSettings:
    def test_defaults(self) -> None:
        s = DispatcherSettings()
        assert s.convention == "request"
        assert s.memoize is False
        assert s.response_type is None

    def test_invalid_convention(self) -> None:
        with pytest.raises(ValidationError):
            DispatcherSettings(convention="sideways")

    def test_response_type_format(self) -> None:
        assert DispatcherSettings(response_type=" app.http:Response ").response_type == "app.http:Response"
        with pytest.raises(ValidationError):
            DispatcherSettings(response_type="app.http.Response")


class TestPipelineConfig:
    def test_effective_merges_overrides(self) -> None:
        defaults = DispatcherSettings(memoize=False, response_type="app.http:Response")
        p = PipelineConfig(stack=["a"], memoize=True)
        eff = p.effective(defaults)
        assert eff.memoize is True
        assert eff.response_type == "app.http:Response"
        assert eff.convention == "request"

    def test_effective_without_overrides(self) -> None:
        defaults = DispatcherSettings(convention="accumulator")
        assert PipelineConfig().effective(defaults) == defaults


class TestMiddlemanConfig:
    def test_defaults(self) -> None:
        cfg = MiddlemanConfig()
        assert cfg.version == "1"
        assert cfg.components == {}
        assert cfg.pipelines == {}

    def test_integer_version_accepted(self) -> None:
        assert MiddlemanConfig.model_validate({"version": 1}).version == "1"

    def test_unsupported_version(self) -> None:
        with pytest.raises(ValidationError):
            MiddlemanConfig.model_validate({"version": "2"})

    def test_component_target_format(self) -> None:
        with pytest.raises(ValidationError):
            MiddlemanConfig.model_validate({"components": {"auth": "not-a-target"}})

    def test_name_whitespace(self) -> None:
        with pytest.raises(ValidationError):
            MiddlemanConfig.model_validate({"components": {" auth": "a.b:c"}})

    def test_name_clash_between_component_and_pipeline(self) -> None:
        with pytest.raises(ValidationError, match="both a component and a pipeline"):
            MiddlemanConfig.model_validate({
                "components": {"api": "a.b:c"},
                "pipelines": {"api": {"stack": ["api"]}},
            })

    def test_empty_request_stack_rejected(self) -> None:
        with pytest.raises(ValidationError, match="empty stack"):
            MiddlemanConfig.model_validate({"pipelines": {"api": {"stack": []}}})

    def test_empty_accumulator_stack_allowed(self) -> None:
        cfg = MiddlemanConfig.model_validate({
            "pipelines": {"noop": {"stack": [], "convention": "accumulator"}},
        })
        assert cfg.pipelines["noop"].effective(cfg.defaults).convention == "accumulator"

    def test_cycle_detected(self) -> None:
        with pytest.raises(ValidationError, match="Cycle detected"):
            MiddlemanConfig.model_validate({
                "pipelines": {
                    "a": {"stack": ["b"]},
                    "b": {"stack": ["a"]},
                },
            })

    def test_self_reference_is_cycle(self) -> None:
        with pytest.raises(ValidationError, match="Cycle detected"):
            MiddlemanConfig.model_validate({"pipelines": {"a": {"stack": ["a"]}}})

    def test_mixed_convention_nesting_rejected(self) -> None:
        with pytest.raises(ValidationError, match="cannot nest"):
            MiddlemanConfig.model_validate({
                "components": {"u": "a.b:c"},
                "pipelines": {
                    "inner": {"stack": ["u"], "convention": "accumulator"},
                    "outer": {"stack": ["inner"]},
                },
            })

    def test_pipeline_order_nested_first(self) -> None:
        cfg = MiddlemanConfig.model_validate({
            "components": {"u": "a.b:c"},
            "pipelines": {
                "outer": {"stack": ["u", "middle"]},
                "middle": {"stack": ["inner", "u"]},
                "inner": {"stack": ["u"]},
            },
        })
        assert cfg.pipeline_order() == ["inner", "middle", "outer"]


# ── Loader ───────────────────────────────────────────────────────────────

_VALID_YAML = """\
version: "1"
logging:
  level: debug
defaults:
  memoize: true
components:
  auth: "app.units:auth"
  router: "app.units:route"
pipelines:
  api:
    stack: [auth, router]
  admin:
    stack: [auth, api]
    memoize: false
"""


class TestLoadConfig:
    def test_valid_file(self, tmp_path) -> None:
        cfg = load_config(_write(tmp_path, "config.yaml", _VALID_YAML))
        assert isinstance(cfg, MiddlemanConfig)
        assert cfg.logging.level == "DEBUG"
        assert cfg.components["auth"] == "app.units:auth"
        assert cfg.pipelines["api"].stack == ["auth", "router"]
        assert cfg.pipelines["admin"].effective(cfg.defaults).memoize is False
        assert cfg.pipelines["api"].effective(cfg.defaults).memoize is True

    def test_yml_extension(self, tmp_path) -> None:
        assert load_config(_write(tmp_path, "config.yml", "version: '1'\n")).version == "1"

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(ConfigurationError, match="does not exist"):
            load_config(str(tmp_path / "absent.yaml"))

    def test_unsupported_extension(self, tmp_path) -> None:
        with pytest.raises(ConfigurationError, match="Unsupported config file extension"):
            load_config(_write(tmp_path, "config.json", "{}"))

    def test_bad_yaml(self, tmp_path) -> None:
        with pytest.raises(ConfigurationError, match="Error reading configuration file"):
            load_config(_write(tmp_path, "config.yaml", "pipelines: [unclosed\n"))

    def test_non_mapping(self, tmp_path) -> None:
        with pytest.raises(ConfigurationError, match="must be a YAML mapping"):
            load_config(_write(tmp_path, "config.yaml", "- just\n- a list\n"))

    def test_validation_errors_reported(self, tmp_path) -> None:
        text = "version: '1'\ndefaults:\n  convention: sideways\nlogging:\n  level: loud\n"
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(_write(tmp_path, "config.yaml", text))
        message = str(exc_info.value)
        assert "2 error(s)" in message
        assert "defaults → convention" in message
        assert "logging → level" in message

    def test_env_expansion(self, tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MM_AUTH_TARGET", "app.security:check")
        text = "components:\n  auth: ${MM_AUTH_TARGET}\npipelines:\n  api:\n    stack: [auth]\n"
        cfg = load_config(_write(tmp_path, "config.yaml", text))
        assert cfg.components["auth"] == "app.security:check"


class TestParseConfig:
    def test_parse_dict(self) -> None:
        raw: Dict[str, Any] = {"pipelines": {"noop": {"stack": [], "convention": "accumulator"}}}
        assert parse_config(raw).pipeline_order() == ["noop"]

    def test_parse_error_wrapped(self) -> None:
        with pytest.raises(ConfigurationError, match="validation failed") as exc_info:
            parse_config({"version": "9"})
        assert isinstance(exc_info.value.__cause__, ValidationError)

