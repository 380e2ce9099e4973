import asyncio
import logging
import sys
import tempfile
from pathlib import Path
from typing import Optional

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from snapboot.components.base import BaseComponent, BaseComponentFactory  # noqa: E402
from snapboot.components.types import ComponentType, ComponentStatus  # noqa: E402
from snapboot.config.properties import DefaultPropertySource  # noqa: E402


class RecordingComponent:
    """Component that records lifecycle calls into a shared journal."""

    def __init__(
            self,
            name: str,
            component_type: ComponentType = ComponentType.CORE,
            journal: Optional[list] = None,
            fail_on: Optional[str] = None,
            healthy: bool = True
    ):
        self.name = name
        self.type = component_type
        self.status = ComponentStatus.CREATED
        self.journal = journal if journal is not None else []
        self.fail_on = fail_on
        self.healthy = healthy

    async def _record(self, operation: str, status: ComponentStatus):
        self.journal.append((operation, self.name))
        if self.fail_on == operation:
            self.status = ComponentStatus.FAILED
            raise RuntimeError(f"{self.name} {operation} failed")
        self.status = status

    async def initialize(self, ctx):
        await self._record("initialize", ComponentStatus.INITIALIZED)

    async def start(self, ctx):
        await self._record("start", ComponentStatus.STARTED)

    async def stop(self, ctx):
        await self._record("stop", ComponentStatus.STOPPED)

    async def health_check(self):
        if not self.healthy:
            raise RuntimeError(f"{self.name} is unhealthy")


class StubFactory(BaseComponentFactory):
    """Factory creating RecordingComponents, counting its invocations."""

    def __init__(
            self,
            name: str,
            dependencies: tuple = (),
            component_type: ComponentType = ComponentType.CORE,
            journal: Optional[list] = None,
            fail: bool = False,
            invalid: bool = False,
            delay: float = 0.0
    ):
        self.name = name
        self.DEPENDENCIES = tuple(dependencies)
        self.component_type = component_type
        self.journal = journal if journal is not None else []
        self.fail = fail
        self.invalid = invalid
        self.delay = delay
        self.created = 0

    def validate_config(self, props):
        if self.invalid:
            raise ValueError(f"{self.name} configuration rejected")
        super().validate_config(props)

    async def create(self, ctx, props):
        self.created += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError(f"cannot create {self.name}")
        self.journal.append(("create", self.name))
        return RecordingComponent(self.name, self.component_type, journal=self.journal)


class SimpleComponent(BaseComponent):
    """BaseComponent with hooks that can be made to fail."""

    def __init__(self, name: str, component_type: ComponentType = ComponentType.CORE, fail_on: Optional[str] = None):
        super().__init__(name, component_type)
        self.fail_on = fail_on

    async def on_initialize(self, ctx):
        if self.fail_on == "initialize":
            raise RuntimeError("initialize failed")

    async def on_start(self, ctx):
        if self.fail_on == "start":
            raise RuntimeError("start failed")

    async def on_stop(self, ctx):
        if self.fail_on == "stop":
            raise RuntimeError("stop failed")


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def props():
    """Empty in-memory property source."""
    return DefaultPropertySource()


@pytest.fixture
def journal():
    """Shared list recording lifecycle calls in order."""
    return []


@pytest.fixture
def recording_component():
    """The RecordingComponent class."""
    return RecordingComponent


@pytest.fixture
def stub_factory():
    """The StubFactory class."""
    return StubFactory


@pytest.fixture
def simple_component():
    """The SimpleComponent class."""
    return SimpleComponent


@pytest.fixture
def sample_yaml_config(temp_dir):
    """Create a configuration directory with a YAML file and a production profile."""
    (temp_dir / "config.yaml").write_text("""
app:
  name: sample
  env: production
web:
  enabled: true
  port: 9090
cache:
  max_size: 10
""")
    (temp_dir / "config.production.yaml").write_text("""
web:
  port: 9443
logger:
  level: warn
""")
    return temp_dir


@pytest.fixture
def sample_json_config(temp_dir):
    """Create a JSON configuration file."""
    config_path = temp_dir / "config.json"
    config_path.write_text("""{
    "app": {"name": "json-app"},
    "database": {"enabled": true, "driver": "postgres"}
}""")
    return config_path


@pytest.fixture(autouse=True)
def reset_app_loggers():
    """Remove handlers the logger component installs during tests."""
    yield
    for name in ("GoBootApp", "sample", "json-app", "test-app"):
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
