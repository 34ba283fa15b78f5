"""Pytest configuration and shared fixtures for composewatch tests."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from composewatch.deploy.compose import ComposeRuntime
from composewatch.deploy.repository import RepositorySynchronizer
from composewatch.deploy.state import StateStore
from composewatch.lib.logging_config import ROOT_LOGGER_NAME
from composewatch.models.deployment import RepositoryState
from composewatch.models.project import ProjectConfig

RENDERED_CONFIG = """name: shop
services:
  api:
    build:
      context: /opt/shop/repo/api
      dockerfile: Dockerfile
    image: ghcr.io/acme/api:1.4.2
    networks:
      default: null
  web:
    image: nginx:1.27
    ports:
      - mode: ingress
        target: 80
        published: "8080"
        protocol: tcp
networks:
  default:
    name: shop_default
volumes:
  cache:
    name: shop_cache
"""

FLOATING_CONFIG = RENDERED_CONFIG.replace("nginx:1.27", "nginx:latest")

LOCAL_COMMIT = "1111111111111111111111111111111111111111"


@pytest.fixture
def rendered_config() -> str:
    """Rendered compose config without floating tags."""
    return RENDERED_CONFIG


@pytest.fixture
def floating_config() -> str:
    """Rendered compose config where ``web`` uses ``nginx:latest``."""
    return FLOATING_CONFIG


@pytest.fixture
def project_config(tmp_path: Path) -> ProjectConfig:
    """Project config rooted in a temporary directory."""
    return ProjectConfig(
        project_name="shop",
        project_dir=tmp_path / "shop",
        repo_url="https://git.example.com/acme/shop.git",
        discord_webhook_url="https://discord.example.com/api/webhooks/1/abc",
    )


@pytest.fixture
def state_store(project_config: ProjectConfig) -> StateStore:
    """State store writing markers under the project directory."""
    return StateStore.from_config(project_config)


@pytest.fixture
def mock_runtime(rendered_config: str) -> MagicMock:
    """Compose runtime mock with one running container."""
    runtime = MagicMock(spec=ComposeRuntime)
    runtime.render_config.return_value = rendered_config
    runtime.list_running_container_ids.return_value = ["c0ffee"]
    return runtime


@pytest.fixture
def mock_synchronizer() -> MagicMock:
    """Synchronizer mock reporting an unchanged repository."""
    synchronizer = MagicMock(spec=RepositorySynchronizer)
    synchronizer.synchronize.return_value = RepositoryState(
        local_commit=LOCAL_COMMIT, remote_commit=LOCAL_COMMIT
    )
    synchronizer.latest_commit_message.return_value = "Update docs"
    return synchronizer


@pytest.fixture(autouse=True)
def reset_package_logger() -> Iterator[None]:
    """Drop handlers installed by setup_logging() so tests stay independent."""
    yield
    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)
