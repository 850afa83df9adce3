"""Shared pytest fixtures for the cadence-migrate test suite.

This module provides common fixtures used across unit and integration tests:
- Temporary directories and a small legacy project tree
- Cadence source samples (legacy and modern)
- A template corpus for migration runs
- A MockFastMCP for tool registration tests
"""

import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict, Generator, List

import pytest
import structlog

from cadence_migrate.models.migration import Template

# ============================================================================
# Logging isolation
# ============================================================================


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """Drop any logging configuration a test (usually the CLI) installed.

    The CLI points structlog at the current stderr, which pytest replaces per
    test; later tests must not write into a closed capture stream.
    """
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


# ============================================================================
# Temporary Directory Fixtures
# ============================================================================


@pytest.fixture
def temp_dir() -> Generator[str, None, None]:
    """Create a temporary directory for test isolation.

    Yields:
        str: Path to temporary directory
    """
    tmp = tempfile.mkdtemp()
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


def write_file(root: str, rel_path: str, content: str) -> Path:
    path = Path(root) / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


# ============================================================================
# Cadence samples
# ============================================================================

LEGACY_CONTRACT = """pub contract Token {
    pub var totalSupply: UFix64

    pub resource Vault: Provider, Receiver {
        pub var balance: UFix64

        init(balance: UFix64) {
            self.balance = balance
        }

        destroy() {
            emit TokensBurned(amount: self.balance)
        }
    }

    init() {
        self.totalSupply = 0.0
        self.account.save(<-create Vault(balance: 0.0), to: /storage/vault)
    }
}
"""

MODERN_CONTRACT = """access(all) contract Counter {
    access(all) var count: Int

    access(all) view fun getCount(): Int {
        return self.count
    }

    access(all) fun increment() {
        self.count = self.count + 1
    }

    init() {
        self.count = 0
    }
}
"""


@pytest.fixture
def legacy_contract() -> str:
    return LEGACY_CONTRACT


@pytest.fixture
def modern_contract() -> str:
    return MODERN_CONTRACT


@pytest.fixture
def legacy_project(temp_dir: str) -> str:
    """Create a small project mixing production code, tests, docs and vendored files.

    Layout:
        contracts/Token.cdc        legacy contract (critical findings)
        contracts/Counter.cdc      modern contract (no findings)
        src/deploy.ts              legacy syntax inside a string literal
        src/__tests__/token.test.ts  legacy syntax in a test file
        docs/migration.md          legacy syntax in documentation
        node_modules/lib/Old.cdc   excluded directory

    Returns:
        str: Path to the project root
    """
    write_file(temp_dir, "contracts/Token.cdc", LEGACY_CONTRACT)
    write_file(temp_dir, "contracts/Counter.cdc", MODERN_CONTRACT)
    write_file(temp_dir, "src/deploy.ts", 'const code = "pub fun hello(): String { return \\"hi\\" }"\n')
    write_file(
        temp_dir,
        "src/__tests__/token.test.ts",
        "it('migrates', () => {\n  const src = `pub fun legacy() {}`\n})\n",
    )
    write_file(temp_dir, "docs/migration.md", "# Migration\n\npub fun old() {}\n")
    write_file(temp_dir, "node_modules/lib/Old.cdc", "pub contract Old {}\n")
    return temp_dir


@pytest.fixture
def clean_project(temp_dir: str) -> str:
    """Create a project whose Cadence code is fully migrated."""
    write_file(temp_dir, "contracts/Counter.cdc", MODERN_CONTRACT)
    write_file(temp_dir, "README.txt", "pub fun ignored() {}\n")
    return temp_dir


# ============================================================================
# Template corpus
# ============================================================================


def make_template(template_id: str, code: str, **overrides: Any) -> Template:
    data: Dict[str, Any] = {
        "id": template_id,
        "name": f"Template {template_id}",
        "description": f"Description of {template_id}",
        "category": "tokens",
        "tags": ["flow"],
        "code": code,
    }
    data.update(overrides)
    return Template.from_dict(data)


@pytest.fixture
def template_corpus() -> List[Template]:
    """Three templates: one legacy, one modern, one legacy NFT template."""
    return [
        make_template("fungible", LEGACY_CONTRACT),
        make_template("counter", MODERN_CONTRACT, category="basics"),
        make_template(
            "nft",
            "pub contract NFTs {\n"
            "    pub resource NFT {\n"
            "        pub let id: UInt64\n"
            "        init(id: UInt64) { self.id = id }\n"
            "        destroy() {}\n"
            "    }\n"
            "    init() {}\n"
            "}\n",
            category="nft",
        ),
    ]


# ============================================================================
# MCP Fixtures
# ============================================================================


class MockFastMCP:
    """Mock FastMCP that records registered tools and returns them unchanged."""

    def __init__(self, name: str = "test") -> None:
        self.name = name
        self.tools: Dict[str, Any] = {}

    def tool(self, **kwargs: Any) -> Any:
        def decorator(func: Any) -> Any:
            self.tools[func.__name__] = func
            return func

        return decorator

    def run(self, **kwargs: Any) -> None:
        pass


@pytest.fixture
def mock_mcp() -> MockFastMCP:
    return MockFastMCP()
