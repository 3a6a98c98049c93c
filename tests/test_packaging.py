from __future__ import annotations

from pathlib import Path


def test_mcp_dependency_stays_on_the_1x_series() -> None:
    """The client uses ``streamablehttp_client``, which is gone in mcp 2.x."""

    pyproject = Path(__file__).resolve().parent.parent / "pyproject.toml"

    assert '"mcp>=1.9,<2"' in pyproject.read_text(encoding="utf-8")
