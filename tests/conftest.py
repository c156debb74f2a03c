"""Pytest configuration and fixtures for row_store tests."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Generator

import pytest
from prometheus_client import CollectorRegistry

from row_store.domain.value_objects import ColumnConstraint, ColumnDefinition
from row_store.infrastructure.config import CheckpointConfig, Config, StorageConfig
from row_store.infrastructure.metrics import MetricsRegistry


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def test_config(temp_dir: Path) -> Config:
    """Provide a test configuration with temporary directories."""
    return Config(
        storage=StorageConfig(
            data_dir=temp_dir / "data",
            sync_mode="none",  # Faster for tests
        ),
        checkpoint=CheckpointConfig(operation_threshold=5),
    )


@pytest.fixture
def metrics_registry() -> MetricsRegistry:
    """Provide a fresh metrics registry for each test."""
    # Use a separate registry to avoid conflicts between tests
    registry = CollectorRegistry(auto_describe=True)
    return MetricsRegistry(registry=registry)


@pytest.fixture
def users_columns() -> list[ColumnDefinition]:
    """Columns of the ``users`` table used across tests."""
    return [
        ColumnDefinition("id", "INT", ColumnConstraint.PRIMARY_KEY),
        ColumnDefinition("email", "STRING", ColumnConstraint.UNIQUE),
        ColumnDefinition("name", "STRING", ColumnConstraint.NOT_NULL),
    ]


# Markers for test categories
def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "chaos: Fault injection tests")
    config.addinivalue_line("markers", "slow: Slow tests")
