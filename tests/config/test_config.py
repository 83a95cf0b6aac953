import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from config.config import (
    CONFIG_PATH_ENV,
    DEFAULT_CONFIG_FILE,
    AppMasterConfig,
    _build_cli_parser,
    _build_merged_config_output,
    _build_validation_output,
    _cli_main,
    _configure_cli_logging,
    _deep_merge,
    _expand_env_vars,
    _handle_cli_error,
    get_config,
    get_config_value,
    load_config,
    load_yaml,
    reset_config,
    resolve_config_path,
    set_config,
)
from core.security.security_config import InstanceDefinition


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    monkeypatch.delenv("CLUSTER_NAME", raising=False)
    monkeypatch.delenv(CONFIG_PATH_ENV, raising=False)


def _write_config(tmp_path, data):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(yaml.dump(data))
    return config_file


MINIMAL = {"appmaster": {"cluster_name": "analytics"}}

# =========================================================================
# load_yaml
# =========================================================================


class TestLoadYaml:
    def test_returns_empty_dict_for_nonexistent_file(self):
        assert load_yaml(Path("/nonexistent/path/config.yaml")) == {}

    def test_loads_yaml_file(self, tmp_path):
        config_file = tmp_path / "test.yaml"
        config_file.write_text("key: value\nnested:\n  a: 1\n")
        assert load_yaml(config_file) == {"key": "value", "nested": {"a": 1}}

    def test_returns_empty_dict_for_empty_file(self, tmp_path):
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")
        assert load_yaml(config_file) == {}


# =========================================================================
# get_config_value
# =========================================================================


class TestGetConfigValue:
    def test_prefers_env_var_over_yaml(self):
        with patch.dict(os.environ, {"MY_VAR": "from_env"}):
            assert get_config_value("MY_VAR", "from_yaml", "default") == "from_env"

    def test_falls_back_to_yaml_value(self):
        with patch.dict(os.environ, {}, clear=True):
            assert get_config_value("MY_VAR", "from_yaml", "default") == "from_yaml"

    def test_falls_back_to_default(self):
        with patch.dict(os.environ, {}, clear=True):
            assert get_config_value("MY_VAR", "", "default") == "default"


# =========================================================================
# _expand_env_vars
# =========================================================================


class TestExpandEnvVars:
    def test_expands_simple_variable(self):
        with patch.dict(os.environ, {"MY_VAR": "hello"}):
            assert _expand_env_vars("prefix-${MY_VAR}-suffix") == "prefix-hello-suffix"

    def test_expands_variable_with_default(self):
        with patch.dict(os.environ, {}, clear=True):
            assert _expand_env_vars("${MISSING_VAR:-fallback}") == "fallback"

    def test_expands_in_nested_structures(self):
        with patch.dict(os.environ, {"KEYTAB": "app.keytab"}):
            data = {
                "components": {"appmaster": {"am.login.keytab.name": "${KEYTAB}"}},
                "l": ["${KEYTAB}"],
            }
            assert _expand_env_vars(data) == {
                "components": {"appmaster": {"am.login.keytab.name": "app.keytab"}},
                "l": ["app.keytab"],
            }

    def test_returns_non_string_unchanged(self):
        assert _expand_env_vars(42) == 42
        assert _expand_env_vars(None) is None

    def test_keeps_literal_when_no_env_var(self):
        with patch.dict(os.environ, {}, clear=True):
            assert _expand_env_vars("${UNDEFINED_VAR}") == "${UNDEFINED_VAR}"

    def test_empty_default_value(self):
        with patch.dict(os.environ, {}, clear=True):
            assert _expand_env_vars("${MISSING:-}") == ""


# =========================================================================
# _deep_merge
# =========================================================================


class TestDeepMerge:
    def test_merges_nested_dicts(self):
        result = _deep_merge({"x": {"a": 1, "b": 2}}, {"x": {"b": 3, "c": 4}})
        assert result == {"x": {"a": 1, "b": 3, "c": 4}}

    def test_overlay_replaces_dict_with_non_dict(self):
        assert _deep_merge({"a": {"nested": True}}, {"a": "flat"}) == {"a": "flat"}

    def test_does_not_modify_original(self):
        base = {"a": 1}
        _deep_merge(base, {"b": 2})
        assert base == {"a": 1}


# =========================================================================
# resolve_config_path
# =========================================================================


class TestResolveConfigPath:
    def test_explicit_path(self, monkeypatch):
        monkeypatch.setenv(CONFIG_PATH_ENV, "/from/env.yaml")
        assert resolve_config_path(Path("/explicit.yaml")) == Path("/explicit.yaml")

    def test_env_path(self, monkeypatch):
        monkeypatch.setenv(CONFIG_PATH_ENV, "/from/env.yaml")
        assert resolve_config_path() == Path("/from/env.yaml")

    def test_default(self):
        assert resolve_config_path() == DEFAULT_CONFIG_FILE


# =========================================================================
# AppMasterConfig
# =========================================================================


class TestAppMasterConfig:
    def test_default_values(self):
        config = AppMasterConfig(cluster_name="analytics")
        assert config.cluster == {}
        assert config.components == {}
        assert config.login_identity == "process"
        assert config.shared_fs == {}
        assert config.staging_root is None
        assert config.log_json is True

    def test_instance_definition(self):
        config = AppMasterConfig(
            cluster_name="analytics",
            components={"appmaster": {"am.login.keytab.name": "app.keytab"}, "worker": None},
        )
        definition = config.instance_definition
        assert isinstance(definition, InstanceDefinition)
        assert definition.get_component("appmaster") == {"am.login.keytab.name": "app.keytab"}
        assert definition.get_component("worker") == {}


class TestAppMasterConfigValidation:
    def test_valid_minimal(self):
        AppMasterConfig(cluster_name="analytics").validate()

    def test_requires_cluster_name(self):
        with pytest.raises(ValueError, match="cluster_name is required"):
            AppMasterConfig().validate()

    def test_rejects_unknown_identity_source(self):
        with pytest.raises(ValueError, match="login_identity"):
            AppMasterConfig(cluster_name="c", login_identity="ldap").validate()

    def test_rejects_non_mapping_component(self):
        with pytest.raises(ValueError, match="components.appmaster must be a mapping"):
            AppMasterConfig(cluster_name="c", components={"appmaster": "app.keytab"}).validate()

    def test_rejects_unknown_shared_fs_type(self):
        with pytest.raises(ValueError, match="shared_fs.type"):
            AppMasterConfig(cluster_name="c", shared_fs={"type": "s3"}).validate()

    def test_local_shared_fs_requires_base_path(self):
        with pytest.raises(ValueError, match="base_path is required"):
            AppMasterConfig(cluster_name="c", shared_fs={"type": "local"}).validate()

    def test_webhdfs_requires_url(self):
        with pytest.raises(ValueError, match="url is required"):
            AppMasterConfig(cluster_name="c", shared_fs={"type": "webhdfs"}).validate()

    def test_staging_root_must_exist(self, tmp_path):
        AppMasterConfig(cluster_name="c", staging_root=str(tmp_path)).validate()
        with pytest.raises(ValueError, match="staging.root"):
            AppMasterConfig(cluster_name="c", staging_root=str(tmp_path / "missing")).validate()


# =========================================================================
# load_config
# =========================================================================


class TestLoadConfig:
    def test_raises_for_missing_file(self):
        with pytest.raises(FileNotFoundError):
            load_config(Path("/nonexistent/config.yaml"))

    def test_raises_for_missing_appmaster_section(self, tmp_path):
        config_file = _write_config(tmp_path, {"not_appmaster": {}})
        with pytest.raises(ValueError, match="missing 'appmaster:'"):
            load_config(config_file)

    def test_loads_minimal_config(self, tmp_path):
        config = load_config(_write_config(tmp_path, MINIMAL))
        assert isinstance(config, AppMasterConfig)
        assert config.cluster_name == "analytics"

    def test_missing_cluster_name_fails_validation(self, tmp_path):
        with pytest.raises(ValueError, match="cluster_name"):
            load_config(_write_config(tmp_path, {"appmaster": {}}))

    def test_loads_full_config(self, tmp_path):
        staging = tmp_path / "staging"
        staging.mkdir()
        data = {
            "appmaster": {
                "cluster_name": "analytics",
                "cluster": {"hadoop.security.authentication": "kerberos"},
                "components": {
                    "appmaster": {
                        "am.keytab.principal.name": "app/_HOST@EXAMPLE.COM",
                        "am.login.keytab.name": "app.keytab",
                    }
                },
                "login_identity": "ticket_cache",
                "shared_fs": {"type": "local", "base_path": "/mnt/shared"},
                "staging": {"root": str(staging)},
                "logging": {"dir": "logs", "json": False},
            }
        }
        config = load_config(_write_config(tmp_path, data))

        assert config.cluster == {"hadoop.security.authentication": "kerberos"}
        assert config.components["appmaster"]["am.login.keytab.name"] == "app.keytab"
        assert config.login_identity == "ticket_cache"
        assert config.shared_fs == {"type": "local", "base_path": "/mnt/shared"}
        assert config.staging_root == str(staging)
        assert config.log_dir == "logs"
        assert config.log_json is False

    def test_stringifies_numeric_keys(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("appmaster:\n  cluster_name: c\n  cluster:\n    1.0: x\n")
        assert load_config(config_file).cluster == {"1.0": "x"}

    def test_applies_overrides(self, tmp_path):
        config = load_config(
            _write_config(tmp_path, MINIMAL),
            overrides={"cluster": {"hadoop.security.authentication": "simple"}},
        )
        assert config.cluster == {"hadoop.security.authentication": "simple"}

    def test_cluster_name_env_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CLUSTER_NAME", "from-env")
        assert load_config(_write_config(tmp_path, MINIMAL)).cluster_name == "from-env"

    def test_expands_env_vars_in_yaml(self, tmp_path, monkeypatch):
        monkeypatch.setenv("AM_KEYTAB_NAME", "svc.keytab")
        data = {
            "appmaster": {
                "cluster_name": "analytics",
                "components": {"appmaster": {"am.login.keytab.name": "${AM_KEYTAB_NAME}"}},
            }
        }
        config = load_config(_write_config(tmp_path, data))
        assert config.components["appmaster"]["am.login.keytab.name"] == "svc.keytab"

    def test_uses_env_config_path(self, tmp_path, monkeypatch):
        monkeypatch.setenv(CONFIG_PATH_ENV, str(_write_config(tmp_path, MINIMAL)))
        assert load_config().cluster_name == "analytics"

    def test_example_config_loads(self, monkeypatch):
        for name in (
            "AM_PRINCIPAL",
            "AM_KEYTAB_LOCAL_PATH",
            "AM_KEYTAB_NAME",
            "HADOOP_SECURITY_AUTHENTICATION",
        ):
            monkeypatch.delenv(name, raising=False)
        monkeypatch.setenv("SHARED_FS_BASE_PATH", "/mnt/shared")
        config = load_config(DEFAULT_CONFIG_FILE.parent / "config.yaml.example")
        assert config.cluster_name == "analytics"
        assert config.cluster["hadoop.security.authentication"] == "kerberos"
        assert config.components["appmaster"]["am.login.keytab.name"] == "app.keytab"


class TestConfigSingleton:
    def setup_method(self):
        reset_config()

    def teardown_method(self):
        reset_config()

    def test_set_config_and_get_config(self):
        set_config(AppMasterConfig(cluster_name="custom"))
        assert get_config().cluster_name == "custom"

    def test_reset_config_clears_singleton(self):
        set_config(AppMasterConfig(cluster_name="custom"))
        reset_config()
        from config import config as config_module

        assert config_module._am_config is None


# =========================================================================
# CLI Helper Functions
# =========================================================================


class TestBuildCliParser:
    def test_validate_flag(self):
        args = _build_cli_parser().parse_args(["--validate"])
        assert args.validate is True
        assert args.show_merged is False

    def test_json_and_verbose_flags(self):
        args = _build_cli_parser().parse_args(["--validate", "--json", "-v"])
        assert args.json is True
        assert args.verbose is True

    def test_config_path(self):
        args = _build_cli_parser().parse_args(["--config", "/path/to/config.yaml", "--validate"])
        assert args.config == Path("/path/to/config.yaml")


class TestConfigureCliLogging:
    def test_verbose(self):
        _configure_cli_logging(verbose=True)  # should not raise


class TestBuildValidationOutput:
    def test_json_output(self):
        result = _build_validation_output(AppMasterConfig(cluster_name="c"), json_output=True)
        assert result == {"validation": {"passed": True, "errors": []}}

    def test_human_output(self, capsys):
        config = AppMasterConfig(
            cluster_name="analytics",
            components={"appmaster": {}},
            shared_fs={"type": "webhdfs", "url": "http://nn:9870"},
        )
        assert _build_validation_output(config, json_output=False) == {}
        out = capsys.readouterr().out
        assert "Configuration validation passed" in out
        assert "Cluster: analytics" in out
        assert "Shared filesystem: webhdfs" in out


class TestBuildMergedConfigOutput:
    def test_json_output(self):
        assert _build_merged_config_output({"key": "value"}, json_output=True) == {
            "merged_config": {"key": "value"}
        }

    def test_human_output(self, capsys):
        assert _build_merged_config_output({"key": "value"}, json_output=False) == {}
        assert "key: value" in capsys.readouterr().out


class TestHandleCliError:
    def test_json_output(self, capsys):
        _handle_cli_error(ValueError("test error"), json_output=True, verbose=False)
        assert json.loads(capsys.readouterr().out) == {"error": "test error"}

    def test_json_output_with_label(self, capsys):
        _handle_cli_error(
            ValueError("bad"), json_output=True, verbose=False, label="Validation error"
        )
        assert json.loads(capsys.readouterr().out) == {"error": "Validation error: bad"}

    def test_verbose_human_output(self, capsys):
        try:
            raise RuntimeError("boom")
        except RuntimeError as e:
            _handle_cli_error(e, json_output=False, verbose=True)
        err = capsys.readouterr().err
        assert "✗ Error: boom" in err
        assert "Traceback" in err


class TestCliMain:
    def test_prints_help_without_action(self, capsys):
        assert _cli_main([]) == 0
        assert "usage" in capsys.readouterr().out

    def test_validate_json(self, tmp_path, capsys):
        config_file = _write_config(tmp_path, MINIMAL)
        assert _cli_main(["--config", str(config_file), "--validate", "--json"]) == 0
        assert json.loads(capsys.readouterr().out)["validation"]["passed"] is True

    def test_show_merged_json(self, tmp_path, capsys):
        config_file = _write_config(tmp_path, MINIMAL)
        assert _cli_main(["--config", str(config_file), "--show-merged", "--json"]) == 0
        assert json.loads(capsys.readouterr().out)["merged_config"] == MINIMAL

    def test_missing_file(self, tmp_path, capsys):
        assert _cli_main(["--config", str(tmp_path / "missing.yaml"), "--validate"]) == 1
        assert "Configuration file not found" in capsys.readouterr().err

    def test_invalid_config(self, tmp_path, capsys):
        config_file = _write_config(tmp_path, {"appmaster": {}})
        assert _cli_main(["--config", str(config_file), "--validate", "--json"]) == 1
        assert "Validation error" in json.loads(capsys.readouterr().out)["error"]
