import pytest

from cnysa.config.configuration import get_settings_registry
from cnysa.core import Cnysa
from cnysa.hosts.manual import ManualHost
from cnysa.registry import InstanceRegistry, default_registry


@pytest.fixture(autouse=True)
def _isolate_config(tmp_path, monkeypatch):
    """Keep user-level settings and CNYSA_* variables out of every test."""
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    for setting in get_settings_registry():
        monkeypatch.delenv(setting.env_var, raising=False)


@pytest.fixture(autouse=True)
def _reset_default_registry():
    # The default registry is process-wide; tests must not see each other's instances
    yield
    default_registry.clear()


@pytest.fixture
def host() -> ManualHost:
    return ManualHost()


@pytest.fixture
def registry() -> InstanceRegistry:
    return InstanceRegistry()


@pytest.fixture
def make_cnysa(host, registry):
    """Build an enabled Cnysa bound to the manual host.

    Output is plain text so assertions can compare rendered pages directly.
    """

    def factory(**options) -> Cnysa:
        options.setdefault("width", 80)
        options.setdefault("color", False)
        return Cnysa(options, host=host, registry=registry).enable()

    return factory
