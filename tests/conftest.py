"""Shared pytest configuration and fixtures for the Image OCR test suite."""

import os
import sys
from pathlib import Path

import pytest

# Ensure the project root is in the path for imports
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "hardware: mark test as requiring a real camera or screen"
    )
    config.addinivalue_line(
        "markers", "gui: mark test as requiring a Tk display"
    )
    config.addinivalue_line(
        "markers", "asyncio: mark test as async"
    )


def pytest_addoption(parser):
    """Add custom command-line options."""
    parser.addoption(
        "--run-hardware",
        action="store_true",
        default=False,
        help="Run tests that require capture hardware",
    )


def pytest_collection_modifyitems(config, items):
    """Skip hardware tests unless --run-hardware is specified."""
    if config.getoption("--run-hardware"):
        return

    skip_hardware = pytest.mark.skip(reason="Need --run-hardware option to run")
    for item in items:
        if "hardware" in item.keywords:
            item.add_marker(skip_hardware)


# =============================================================================
# Shared Fixtures
# =============================================================================

@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def png_bytes() -> bytes:
    """PNG-signed payload; tests treat it as opaque bytes."""
    return bytes.fromhex(
        "89504e470d0a1a0a0000000d4948445200000001000000010806000000"
        "1f15c4890000000d49444154789c6360000002000154a24f5d0000000049454e44ae426082"
    )


@pytest.fixture
def fake_engine(tmp_path: Path):
    """Factory writing an executable stand-in for the recognition engine.

    ``body`` is Python source run with ``data`` bound to the stdin bytes and
    ``args`` to argv[1:].
    """
    if os.name == "nt":
        pytest.skip("Script engines rely on shebang execution")

    def factory(body: str, name: str = "engine") -> Path:
        script = tmp_path / name
        script.write_text(
            f"#!{sys.executable}\n"
            "import sys\n"
            "data = sys.stdin.buffer.read()\n"
            "args = sys.argv[1:]\n"
            f"{body}\n",
            encoding="utf-8",
        )
        script.chmod(0o755)
        return script

    return factory
