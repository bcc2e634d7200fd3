from __future__ import annotations

import importlib

import pytest

MODULES = [
    "dazzle_panel.services",
    "dazzle_panel.services.encoding",
    "dazzle_panel.services.print_client",
    "dazzle_panel.services.watcher",
    "dazzle_panel.services.backend",
    "dazzle_panel.services.subscriptions",
    "dazzle_panel.services.server_manager",
    "dazzle_panel.store",
    "dazzle_panel.main",
]


@pytest.mark.parametrize("name", MODULES)
def test_module_imports(name):
    assert importlib.import_module(name) is not None
