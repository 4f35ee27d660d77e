"""
Configuration loading: packaged defaults, environment overrides and
capability-table validation.
"""

from pathlib import Path

import pytest
import yaml

from insurance_config import DEFAULT_CONFIG_PATH, get_active_settings
from insurance_config.loader import (
    apply_env_overrides,
    compute_checksum,
    load_yaml_file,
    parse_capabilities,
    parse_log_level,
)
from insurance_config.schema import WILDCARD


def _write(tmp_path: Path, data: dict) -> Path:
    path = tmp_path / "backoffice.yaml"
    path.write_text(yaml.safe_dump(data, allow_unicode=True))
    return path


def _minimal(**overrides) -> dict:
    data = {
        "settings": {"database": {"url": "sqlite://"}},
        "operations": ["contract.view", "contract.renew"],
        "roles": {"agent": ["contract.view"], "admin": [WILDCARD]},
    }
    data.update(overrides)
    return data


class TestDefaults:
    def test_packaged_defaults(self, settings):
        assert settings.database.url == "sqlite:///insurance_backoffice.db"
        assert settings.logging.level == "INFO"
        assert settings.expose_error_details is False
        assert len(settings.checksum) == 64

    def test_default_roles(self, settings):
        caps = settings.capabilities
        assert caps.allows("gestionnaire", "contract.renew")
        assert caps.allows("gestionnaire", "indemnification.pay")
        assert not caps.allows("agent", "contract.renew")
        assert not caps.allows("agent", "indemnification.validate")
        assert caps.allows("client", "claim.create")
        assert not caps.allows("client", "claim.update")
        assert caps.allows("system", "contract.expire")
        assert caps.allows("gestionnaire", "bank.reconcile")
        assert caps.allows("gestionnaire", "analytics.view")
        assert not caps.allows("agent", "bank.reconcile")

    def test_admin_wildcard_grants_the_whole_catalogue(self, settings):
        caps = settings.capabilities
        assert caps.operations_for("admin") == caps.operations
        assert caps.allows("admin", "user.manage")
        assert not caps.allows("admin", "not.declared")

    def test_unknown_role_and_no_role_get_nothing(self, settings):
        assert settings.capabilities.operations_for("visiteur") == frozenset()
        assert settings.capabilities.operations_for(None) == frozenset()


class TestEnvironmentOverrides:
    def test_database_url_and_log_level(self):
        settings = get_active_settings(
            environ={"DATABASE_URL": "postgresql://u:p@db/backoffice", "INSURANCE_LOG_LEVEL": "debug"}
        )
        assert settings.database.url == "postgresql://u:p@db/backoffice"
        assert settings.logging.level == "DEBUG"

    def test_overrides_change_the_checksum(self, settings):
        overridden = get_active_settings(environ={"DATABASE_URL": "sqlite://"})
        assert overridden.checksum != settings.checksum

    def test_overrides_do_not_mutate_input(self):
        data = _minimal()
        apply_env_overrides(data, {"DATABASE_URL": "postgresql://x"})
        assert data["settings"]["database"]["url"] == "sqlite://"

    def test_empty_values_are_ignored(self, settings):
        same = get_active_settings(environ={"DATABASE_URL": "", "INSURANCE_LOG_LEVEL": ""})
        assert same.checksum == settings.checksum


class TestValidation:
    def test_custom_file(self, tmp_path):
        settings = get_active_settings(_write(tmp_path, _minimal()), environ={})
        assert settings.capabilities.allows("agent", "contract.view")
        assert not settings.capabilities.allows("agent", "contract.renew")

    def test_undeclared_operation(self, tmp_path):
        path = _write(tmp_path, _minimal(roles={"agent": ["contract.view", "claim.delete"]}))
        with pytest.raises(ValueError, match="claim.delete"):
            get_active_settings(path, environ={})

    def test_duplicate_operations(self):
        with pytest.raises(ValueError, match="duplicates"):
            parse_capabilities(["a", "a"], {})

    def test_missing_database_url(self, tmp_path):
        path = _write(tmp_path, _minimal(settings={"database": {}}))
        with pytest.raises(ValueError, match="url"):
            get_active_settings(path, environ={})

    def test_bad_log_level(self):
        with pytest.raises(ValueError):
            parse_log_level("VERBOSE")

    def test_non_boolean_flag(self, tmp_path):
        data = _minimal()
        data["settings"]["expose_error_details"] = "yes"
        with pytest.raises(ValueError):
            get_active_settings(_write(tmp_path, data), environ={})

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_settings(tmp_path / "absent.yaml", environ={})

    def test_top_level_must_be_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError):
            load_yaml_file(path)


class TestChecksum:
    def test_checksum_ignores_key_order(self):
        assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})

    def test_packaged_file_exists(self):
        assert DEFAULT_CONFIG_PATH.is_file()
