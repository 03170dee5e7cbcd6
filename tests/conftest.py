"""Pytest configuration and fixtures for javaflow tests."""

import re
from pathlib import Path
from typing import Optional

import pytest

FIXTURES = Path(__file__).parent / "fixtures" / "java"


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path: Path, monkeypatch):
    """Point the config file at an empty temp location so a user's
    ~/.javaflow/config.toml never leaks into tests."""
    monkeypatch.setattr("javaflow_cli.config.CONFIG_FILE", tmp_path / "config.toml")
    return tmp_path / "config.toml"


@pytest.fixture
def java_fixtures() -> Path:
    """Directory holding the sample Java sources."""
    return FIXTURES


@pytest.fixture
def order_service_path() -> Path:
    return FIXTURES / "OrderService.java"


@pytest.fixture
def order_service_source(order_service_path: Path) -> str:
    return order_service_path.read_text(encoding="utf-8")


@pytest.fixture
def broken_path() -> Path:
    return FIXTURES / "Broken.java"


@pytest.fixture
def student_source() -> str:
    """Sequential internal calls plus one call on a collaborator."""
    return '''
class Student {
    public void study() {
        lesson1();
        homework1();
        teacher.ask();
        this.homework2();
    }
    private void lesson1() {
    }
    private void homework1() {
    }
    private void homework2() {
    }
}
'''


def find_node_id(diagram: str, label: str) -> Optional[str]:
    """Id of the node declared with exactly *label*, whatever its shape."""
    pattern = r"^\s*(N\d+)[\[\(\{]+\"" + re.escape(label) + r"\""
    match = re.search(pattern, diagram, re.MULTILINE)
    return match.group(1) if match else None


@pytest.fixture
def node_id():
    """Lookup helper: ``node_id(diagram, label) -> "N3"``."""
    return find_node_id
