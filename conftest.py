"""Root conftest.py for the jigtest monorepo.

Provides shared pytest configuration across all packages. Tests that need
real JIG hardware (a cabled Ethernet port, the iperf3 peer, OTP fuses) are
marked ``hardware`` and skipped unless ``--run-hardware`` is given.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from _pytest.config import Config
    from _pytest.config.argparsing import Parser
    from _pytest.nodes import Item


# Add all package src directories to path for imports
PROJECT_ROOT = Path(__file__).parent
for pkg_dir in PROJECT_ROOT.glob("jigtest-*/src"):
    if str(pkg_dir) not in sys.path:
        sys.path.insert(0, str(pkg_dir))


def pytest_addoption(parser: Parser) -> None:
    """Add the hardware opt-in flag."""
    parser.addoption(
        "--run-hardware",
        action="store_true",
        default=False,
        help="Run tests that drive real JIG hardware",
    )


def pytest_configure(config: Config) -> None:
    """Register custom markers.

    Args:
        config: pytest configuration object.
    """
    config.addinivalue_line(
        "markers",
        "hardware: Test requiring real JIG hardware",
    )
    config.addinivalue_line(
        "markers",
        "slow: Slow-running test",
    )


def pytest_collection_modifyitems(config: Config, items: list[Item]) -> None:
    """Skip hardware tests unless explicitly requested.

    Args:
        config: pytest configuration object.
        items: List of collected test items.
    """
    if config.getoption("--run-hardware"):
        return
    skip_hardware = pytest.mark.skip(reason="needs --run-hardware")
    for item in items:
        if item.get_closest_marker("hardware"):
            item.add_marker(skip_hardware)


def pytest_report_header(config: Config) -> list[str]:
    """Add run mode info to pytest header.

    Args:
        config: pytest configuration object.

    Returns:
        List of header lines.
    """
    lines = ["jigtest monorepo test suite"]
    if config.getoption("--run-hardware"):
        lines.append("Hardware tests: enabled")
    return lines
