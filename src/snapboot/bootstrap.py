import inspect
import logging
from pathlib import Path
from typing import Optional, Union

from .application import Application
from .autoconfig.configurers import full_configurations
from .components.protocols import Component, AutoConfigurer, ComponentActivator, Plugin
from .config.models import BootSettings
from .config.properties import PropertySource
from .errors import BootError

logger = logging.getLogger(__name__)


class Boot:
    """
    Fluent builder that assembles and runs an :class:`Application`.

        await (
            Boot()
            .set_config_path("configs")
            .add_component(OrderService())
            .add_plugin(MetricsPlugin())
            .run()
        )

    The five built-in configurers (config, logger, dbstore, cache, web) are
    always registered; user configurers and activators are added after them.
    """

    def __init__(self) -> None:
        self._config_path: Optional[Path] = None
        self._profile: Optional[str] = None
        self._properties: Optional[PropertySource] = None
        self._components: list[Component] = []
        self._plugins: list[Plugin] = []
        self._configurers: list[AutoConfigurer] = []
        self._activators: list[ComponentActivator] = []
        self.application: Optional[Application] = None

    def set_config_path(self, path: Union[str, Path]) -> "Boot":
        self._config_path = Path(path)
        return self

    def set_profile(self, profile: str) -> "Boot":
        self._profile = profile
        return self

    def set_property_source(self, properties: PropertySource) -> "Boot":
        """Use ``properties`` as-is instead of loading files and the environment."""
        self._properties = properties
        return self

    def add_component(self, component: Component) -> "Boot":
        self._components.append(component)
        return self

    def add_plugin(self, plugin: Plugin) -> "Boot":
        self._plugins.append(plugin)
        return self

    def add_configurer(self, configurer: AutoConfigurer) -> "Boot":
        self._configurers.append(configurer)
        return self

    def add_activator(self, activator: ComponentActivator) -> "Boot":
        self._activators.append(activator)
        return self

    async def create_application(self) -> Application:
        """Build the application and apply every contribution, without initializing it."""
        if self._properties is not None:
            app = Application(self._properties)
        else:
            settings = BootSettings()
            app = Application.from_config(
                self._config_path or settings.config_path,
                profile=self._profile or settings.profile,
                load_environment=settings.load_environment
            )

        for configurer in full_configurations():
            app.add_configurer(configurer)
        for configurer in self._configurers:
            app.add_configurer(configurer)
        for activator in self._activators:
            app.add_activator(activator)

        for component in self._components:
            try:
                app.register_component(component)
            except BootError as e:
                logger.error("Failed to register component %s: %s", component.name, e)

        for plugin in self._plugins:
            name = getattr(plugin, "name", type(plugin).__name__)
            try:
                result = plugin.register(app)
                if inspect.iscoroutine(result):
                    await result
            except Exception as e:
                logger.exception("Failed to register plugin %s: %s", name, e)
                continue
            logger.info("Registered plugin: %s", name)

        self.application = app
        return app

    async def initialize(self) -> Application:
        """Build and initialize the application, returning it without starting."""
        app = await self.create_application()
        await app.initialize()
        return app

    async def run(self) -> None:
        """Build the application and run it until shutdown."""
        app = await self.create_application()
        await app.run()
