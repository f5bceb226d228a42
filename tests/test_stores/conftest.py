"""Trust store fixtures."""

from __future__ import annotations

import pytest

from .fakes import STORE_NAMES, FakeTools, build_store


@pytest.fixture
def fake_tools(monkeypatch):
    tools = FakeTools()
    monkeypatch.setattr("cert_manage.core.process.subprocess.run", tools)
    return tools


@pytest.fixture(params=STORE_NAMES)
def populated_store(request, tmp_path, fake_tools, ca_pems):
    """Every store implementation, pre-loaded with the six test CAs."""
    return build_store(request.param, tmp_path, fake_tools, ca_pems)
