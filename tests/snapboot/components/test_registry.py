import asyncio

import pytest

from snapboot.components.registry import ComponentRegistry, DefaultHealthChecker
from snapboot.components.types import ComponentType
from snapboot.errors import (
    ComponentError,
    ComponentExists,
    ComponentOperation,
    DependencyError,
    ErrorKind,
)


@pytest.fixture
def registry(props):
    return ComponentRegistry(props)


class TestRegisterComponent:
    """Tests for direct component registration."""

    def test_register_and_lookup(self, registry, recording_component):
        """Test a registered component is returned by name."""
        component = recording_component("svc")
        registry.register_component(component)

        assert registry.has_component("svc")
        assert registry.get_all_components() == {"svc": component}
        assert registry.get_metrics().component_count == 1

    def test_duplicate_name_rejected(self, registry, recording_component):
        """Test registering the same name twice fails without changing state."""
        first = recording_component("svc")
        registry.register_component(first)

        with pytest.raises(ComponentError) as exc_info:
            registry.register_component(recording_component("svc"))

        assert exc_info.value.operation is ComponentOperation.REGISTER
        assert isinstance(exc_info.value.unwrap(), ComponentExists)
        assert registry.get_all_components() == {"svc": first}

    def test_get_all_components_returns_copy(self, registry, recording_component):
        """Test mutating the returned mapping does not affect the registry."""
        registry.register_component(recording_component("svc"))
        snapshot = registry.get_all_components()
        snapshot.clear()

        assert registry.has_component("svc")


class TestRegisterFactory:
    """Tests for factory registration."""

    def test_register_factory_records_dependencies(self, registry, stub_factory):
        """Test the factory and its dependencies are stored."""
        registry.register_factory("api", stub_factory("api", dependencies=("db",)))

        assert registry.has_factory("api")
        assert registry.dependency_graph() == {"api": ["db"]}
        assert registry.get_metrics().factory_count == 1

    def test_invalid_configuration_rejected(self, registry, stub_factory):
        """Test a failing validate_config raises ComponentError(register)."""
        with pytest.raises(ComponentError) as exc_info:
            registry.register_factory("bad", stub_factory("bad", invalid=True))

        assert exc_info.value.operation is ComponentOperation.REGISTER
        assert isinstance(exc_info.value.cause, ValueError)
        assert not registry.has_factory("bad")


class TestGetComponent:
    """Tests for lazy component lookup."""

    @pytest.mark.asyncio
    async def test_unknown_name_returns_none(self, registry):
        """Test lookup of an unknown name returns None."""
        assert await registry.get_component("nope") is None

    @pytest.mark.asyncio
    async def test_creates_from_factory_once(self, registry, stub_factory):
        """Test the factory runs on first lookup and the result is cached."""
        factory = stub_factory("svc")
        registry.register_factory("svc", factory)

        first = await registry.get_component("svc")
        second = await registry.get_component("svc")

        assert first is second
        assert factory.created == 1

    @pytest.mark.asyncio
    async def test_concurrent_lookups_create_once(self, registry, stub_factory):
        """Test concurrent callers trigger a single creation."""
        factory = stub_factory("svc", delay=0.01)
        registry.register_factory("svc", factory)

        results = await asyncio.gather(*(registry.get_component("svc") for _ in range(10)))

        assert factory.created == 1
        assert all(result is results[0] for result in results)

    @pytest.mark.asyncio
    async def test_creation_failure_returns_none(self, registry, stub_factory):
        """Test a failing factory yields None and is recorded."""
        registry.register_factory("svc", stub_factory("svc", fail=True))

        assert await registry.get_component("svc") is None
        assert registry.get_metrics().failed_components == ["svc"]

    @pytest.mark.asyncio
    async def test_concurrent_lookups_share_failed_creation(self, registry, stub_factory):
        """Test callers waiting on a failing creation do not retry it."""
        factory = stub_factory("svc", fail=True, delay=0.05)
        registry.register_factory("svc", factory)

        results = await asyncio.gather(*(registry.get_component("svc") for _ in range(5)))

        assert results == [None] * 5
        assert factory.created == 1

    @pytest.mark.asyncio
    async def test_lookup_after_failure_retries(self, registry, stub_factory):
        """Test a later lookup attempts creation again."""
        factory = stub_factory("svc", fail=True)
        registry.register_factory("svc", factory)

        assert await registry.get_component("svc") is None
        factory.fail = False

        assert await registry.get_component("svc") is not None
        assert factory.created == 2


class TestResolveDependencies:
    """Tests for dependency resolution."""

    @pytest.mark.asyncio
    async def test_creates_in_dependency_order(self, registry, stub_factory, journal):
        """Test dependencies are created before their dependents."""
        registry.register_factory("web", stub_factory("web", ("cache", "db"), journal=journal))
        registry.register_factory("cache", stub_factory("cache", ("db",), journal=journal))
        registry.register_factory("db", stub_factory("db", journal=journal))

        await registry.resolve_dependencies()

        assert journal == [("create", "db"), ("create", "cache"), ("create", "web")]
        assert set(registry.get_all_components()) == {"db", "cache", "web"}
        assert registry.get_metrics().dependency_resolution_time >= 0

    @pytest.mark.asyncio
    async def test_direct_components_satisfy_dependencies(self, registry, stub_factory, recording_component):
        """Test a directly registered component satisfies a factory dependency."""
        registry.register_component(recording_component("logger", ComponentType.INFRASTRUCTURE))
        registry.register_factory("svc", stub_factory("svc", ("logger",)))

        await registry.resolve_dependencies()

        assert registry.has_component("svc")

    @pytest.mark.asyncio
    async def test_cycle_detected(self, registry, stub_factory):
        """Test a dependency cycle raises DependencyError with the cycle path."""
        registry.register_factory("a", stub_factory("a", ("b",)))
        registry.register_factory("b", stub_factory("b", ("c",)))
        registry.register_factory("c", stub_factory("c", ("a",)))

        with pytest.raises(DependencyError) as exc_info:
            await registry.resolve_dependencies()

        assert exc_info.value.kind is ErrorKind.DEPENDENCY
        assert exc_info.value.chain == ["a", "b", "c", "a"]
        assert registry.get_all_components() == {}

    @pytest.mark.asyncio
    async def test_self_dependency_is_a_cycle(self, registry, stub_factory):
        """Test a factory depending on itself is a cycle."""
        registry.register_factory("a", stub_factory("a", ("a",)))

        with pytest.raises(DependencyError) as exc_info:
            await registry.resolve_dependencies()

        assert exc_info.value.chain == ["a", "a"]

    @pytest.mark.asyncio
    async def test_long_dependency_chain(self, registry, stub_factory):
        """Test a deep dependency chain resolves in order."""
        names = [f"c{index:04d}" for index in range(1500)]
        for name, dep in zip(names, names[1:]):
            registry.register_factory(name, stub_factory(name, (dep,)))
        registry.register_factory(names[-1], stub_factory(names[-1]))

        await registry.resolve_dependencies()

        assert len(registry.get_all_components()) == 1500

    @pytest.mark.asyncio
    async def test_long_cycle_detected(self, registry, stub_factory):
        """Test a cycle closing a deep chain is reported in full."""
        names = [f"c{index:04d}" for index in range(1500)]
        for name, dep in zip(names, names[1:] + names[:1]):
            registry.register_factory(name, stub_factory(name, (dep,)))

        with pytest.raises(DependencyError) as exc_info:
            await registry.resolve_dependencies()

        assert exc_info.value.chain == names + [names[0]]

    @pytest.mark.asyncio
    async def test_missing_dependency(self, registry, stub_factory):
        """Test a dependency that is neither component nor factory is reported."""
        registry.register_factory("svc", stub_factory("svc", ("logger",)))

        with pytest.raises(DependencyError) as exc_info:
            await registry.resolve_dependencies()

        assert exc_info.value.chain == ["svc", "logger"]
        assert "dependency logger not found" in str(exc_info.value)
        assert not registry.has_component("svc")

    @pytest.mark.asyncio
    async def test_creation_failure_aborts(self, registry, stub_factory):
        """Test a failing factory raises ComponentError(create) and keeps earlier components."""
        registry.register_factory("db", stub_factory("db"))
        registry.register_factory("svc", stub_factory("svc", ("db",), fail=True))

        with pytest.raises(ComponentError) as exc_info:
            await registry.resolve_dependencies()

        assert exc_info.value.operation is ComponentOperation.CREATE
        assert exc_info.value.component == "svc"
        assert registry.has_component("db")
        assert "svc" in registry.get_metrics().failed_components


class TestSortedOrder:
    """Tests for lifecycle ordering."""

    @pytest.fixture
    def populated(self, registry, recording_component):
        for name, component_type in [
            ("zeta", ComponentType.CORE),
            ("http", ComponentType.WEB),
            ("store", ComponentType.DATA_SOURCE),
            ("logger", ComponentType.INFRASTRUCTURE),
            ("alpha", ComponentType.CORE),
            ("cache", ComponentType.INFRASTRUCTURE),
        ]:
            registry.register_component(recording_component(name, component_type))
        return registry

    def test_grouped_by_type_then_name(self, populated):
        """Test sorted order is Infrastructure, DataSource, Core, Web with names ascending."""
        names = [c.name for c in populated.get_all_components_sorted()]

        assert names == ["cache", "logger", "store", "alpha", "zeta", "http"]

    def test_shutdown_order_is_reverse(self, populated):
        """Test shutdown order is the exact reverse of the sorted order."""
        assert populated.get_all_components_for_shutdown() == list(
            reversed(populated.get_all_components_sorted())
        )

    def test_lookup_by_type(self, populated):
        """Test typed lookups."""
        assert populated.get_component_by_type(ComponentType.CORE).name == "alpha"
        assert [c.name for c in populated.get_components_by_type(ComponentType.INFRASTRUCTURE)] == [
            "cache", "logger"
        ]
        assert populated.get_component_by_type(ComponentType.WEB).name == "http"


class TestHealthCheck:
    """Tests for the aggregate health check."""

    @pytest.mark.asyncio
    async def test_collects_failures(self, registry, recording_component):
        """Test only unhealthy components appear in the result."""
        registry.register_component(recording_component("good"))
        registry.register_component(recording_component("bad", healthy=False))

        results = await registry.health_check()

        assert list(results) == ["bad"]
        assert isinstance(results["bad"], RuntimeError)

    @pytest.mark.asyncio
    async def test_metrics_updated(self, registry, recording_component):
        """Test the check count increments and failures are deduplicated."""
        registry.register_component(recording_component("bad", healthy=False))

        await registry.health_check()
        await registry.health_check()
        metrics = registry.get_metrics()

        assert metrics.health_check_count == 2
        assert metrics.failed_components == ["bad"]

    @pytest.mark.asyncio
    async def test_metrics_are_copies(self, registry, recording_component):
        """Test get_metrics returns an independent copy."""
        registry.register_component(recording_component("bad", healthy=False))
        await registry.health_check()

        metrics = registry.get_metrics()
        metrics.failed_components.append("other")

        assert registry.get_metrics().failed_components == ["bad"]

    @pytest.mark.asyncio
    async def test_custom_health_checker(self, props, recording_component):
        """Test the injected health checker decides the outcome."""

        class AlwaysUnhealthy:
            async def check_health(self, component):
                return RuntimeError("nope")

        registry = ComponentRegistry(props, health_checker=AlwaysUnhealthy())
        registry.register_component(recording_component("svc"))

        assert set(await registry.health_check()) == {"svc"}

    @pytest.mark.asyncio
    async def test_default_checker_timeout(self, recording_component):
        """Test a slow health check is reported as a timeout."""
        component = recording_component("slow")

        async def slow_check():
            await asyncio.sleep(1)

        component.health_check = slow_check
        error = await DefaultHealthChecker(timeout=0.01).check_health(component)

        assert isinstance(error, TimeoutError)
