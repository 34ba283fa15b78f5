"""Unit tests for project configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from composewatch.config.loader import ConfigLoader
from composewatch.lib.errors import ConfigError

WEBHOOK = "https://discord.example.com/api/webhooks/1/abc"


class TestLoadYaml:
    """Tests for YAML project files."""

    def test_minimal_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "shop.yaml"
        path.write_text(
            "project_name: shop\n"
            "project_dir: /opt/shop\n"
            "repo_url: git@github.com:acme/shop.git\n"
            f"discord_webhook_url: {WEBHOOK}\n"
        )

        config = ConfigLoader(env={}).load_project_config(path)

        assert config.project_name == "shop"
        assert config.project_dir == Path("/opt/shop")
        assert config.branch == "main"

    def test_env_substitution(self, tmp_path: Path) -> None:
        path = tmp_path / "shop.yml"
        path.write_text(
            "project_name: shop\n"
            "project_dir: ${SHOP_DIR}\n"
            "repo_url: git@github.com:acme/shop.git\n"
            "discord_webhook_url: ${WEBHOOK}\n"
            "compose_files:\n  - compose.yaml\n  - compose.prod.yaml\n"
        )

        config = ConfigLoader(
            env={"SHOP_DIR": "/srv/shop", "WEBHOOK": WEBHOOK}
        ).load_project_config(path)

        assert config.project_dir == Path("/srv/shop")
        assert config.discord_webhook_url == WEBHOOK
        assert config.compose_files == ["compose.yaml", "compose.prod.yaml"]

    def test_unset_reference_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "shop.yaml"
        path.write_text("project_name: shop\nrepo_url: ${REPO_URL}\n")

        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader(env={}).load_project_config(path)

        assert exc_info.value.field == "REPO_URL"

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "shop.yaml"
        path.write_text("project_name: [shop\n")

        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader(env={}).load_project_config(path)

        assert exc_info.value.field == "yaml_parse"

    def test_non_mapping_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "shop.yaml"
        path.write_text("- shop\n- other\n")

        with pytest.raises(ConfigError, match="Expected a mapping"):
            ConfigLoader(env={}).load_project_config(path)

    def test_unknown_key_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "shop.yaml"
        path.write_text(
            "project_name: shop\n"
            "project_dir: /opt/shop\n"
            "repo_url: git@github.com:acme/shop.git\n"
            f"discord_webhook_url: {WEBHOOK}\n"
            "deploy_mode: swarm\n"
        )

        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader(env={}).load_project_config(path)

        assert exc_info.value.field == "project_validation"
        assert "deploy_mode" in exc_info.value.message


class TestLoadEnvFile:
    """Tests for KEY=VALUE project files."""

    def test_env_file(self, tmp_path: Path) -> None:
        path = tmp_path / "shop.env"
        path.write_text(
            "# shop deployment\n"
            "PROJECT_NAME=shop\n"
            "PROJECT_DIR=/opt/composewatch/projects/shop\n"
            "REPO_URL=git@github.com:acme/shop.git\n"
            "BRANCH=release\n"
            f'DISCORD_WEBHOOK_URL="{WEBHOOK}"\n'
            "FLOATING_IMAGE_PULL_INTERVAL_MINUTES=30\n"
            "COMPOSE_FILES=compose.yaml,compose.prod.yaml\n"
            "FLOATING_TAGS=latest stable\n"
        )

        config = ConfigLoader(env={}).load_project_config(path)

        assert config.project_name == "shop"
        assert config.branch == "release"
        assert config.remote_ref == "origin/release"
        assert config.discord_webhook_url == WEBHOOK
        assert config.floating_image_pull_interval_minutes == 30
        assert config.compose_files == ["compose.yaml", "compose.prod.yaml"]
        assert config.floating_tags == ["latest", "stable"]

    def test_unknown_and_empty_keys_ignored(self, tmp_path: Path) -> None:
        path = tmp_path / "shop.env"
        path.write_text(
            "PROJECT_NAME=shop\n"
            "PROJECT_DIR=/opt/shop\n"
            "REPO_URL=git@github.com:acme/shop.git\n"
            f"DISCORD_WEBHOOK_URL={WEBHOOK}\n"
            "BRANCH=\n"
            "POSTGRES_PASSWORD=secret\n"
        )

        config = ConfigLoader(env={}).load_project_config(path)

        assert config.branch == "main"

    def test_missing_required_field(self, tmp_path: Path) -> None:
        path = tmp_path / "shop.env"
        path.write_text(f"PROJECT_NAME=shop\nDISCORD_WEBHOOK_URL={WEBHOOK}\n")

        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader(env={}).load_project_config(path)

        assert "Field 'repo_url' (REPO_URL) is required" in exc_info.value.message
        assert "Field 'project_dir' (PROJECT_DIR) is required" in (
            exc_info.value.message
        )


class TestEnvFallbacks:
    """Tests for values taken from the process environment."""

    def test_webhook_from_environment(self, tmp_path: Path) -> None:
        path = tmp_path / "shop.env"
        path.write_text(
            "PROJECT_NAME=shop\n"
            "PROJECT_DIR=/opt/shop\n"
            "REPO_URL=git@github.com:acme/shop.git\n"
        )

        config = ConfigLoader(
            env={"DISCORD_WEBHOOK_URL": WEBHOOK, "COMPOSEWATCH_LOG_LEVEL": "warn"}
        ).load_project_config(path)

        assert config.discord_webhook_url == WEBHOOK
        assert config.log_level == "WARN"

    def test_file_value_wins_over_environment(self, tmp_path: Path) -> None:
        path = tmp_path / "shop.env"
        path.write_text(
            "PROJECT_NAME=shop\n"
            "PROJECT_DIR=/opt/shop\n"
            "REPO_URL=git@github.com:acme/shop.git\n"
            f"DISCORD_WEBHOOK_URL={WEBHOOK}\n"
        )

        config = ConfigLoader(
            env={"DISCORD_WEBHOOK_URL": "https://other.example.com/hook"}
        ).load_project_config(path)

        assert config.discord_webhook_url == WEBHOOK

    def test_missing_webhook_is_an_error(self, tmp_path: Path) -> None:
        path = tmp_path / "shop.env"
        path.write_text(
            "PROJECT_NAME=shop\n"
            "PROJECT_DIR=/opt/shop\n"
            "REPO_URL=git@github.com:acme/shop.git\n"
        )

        with pytest.raises(ConfigError, match="DISCORD_WEBHOOK_URL"):
            ConfigLoader(env={}).load_project_config(path)


class TestMissingFile:
    """Tests for absent config files."""

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader(env={}).load_project_config(tmp_path / "nope.env")

        assert exc_info.value.field == "config_file"
