"""
Ticker App

A minimal application demonstrating the boot framework: a custom core
component with a background task, contributed through a configurer.

    python examples/ticker/app.py
"""
import asyncio
import logging
from pathlib import Path

from snapboot import (
    BaseComponent,
    BaseComponentFactory,
    Boot,
    ComponentType,
    FactoryConfigurer,
)

logger = logging.getLogger(__name__)


class TickerComponent(BaseComponent):
    """Logs a message every ``interval`` seconds until the application stops."""

    def __init__(self, interval: float) -> None:
        super().__init__("ticker", ComponentType.CORE)
        self.interval = interval
        self.ticks = 0

    async def on_start(self, ctx) -> None:
        app_logger = (await ctx.get_component("logger")).get_bean()
        ctx.create_task(self._tick(ctx, app_logger), name="ticker")

    async def _tick(self, ctx, app_logger: logging.Logger) -> None:
        while not ctx.cancelled:
            await asyncio.sleep(self.interval)
            self.ticks += 1
            app_logger.info("Tick %d", self.ticks)


class TickerFactory(BaseComponentFactory):
    PREFIX = "ticker"
    DEPENDENCIES = ("logger",)

    async def create(self, ctx, props) -> TickerComponent:
        return TickerComponent(props.get_float("ticker.interval", 5.0))


class TickerConfigurer(FactoryConfigurer):
    COMPONENT_NAME = "ticker"
    ORDER = 1000
    FACTORY = TickerFactory
    ENABLED_PROPERTY = "ticker.enabled"


async def main() -> None:
    await (
        Boot()
        .set_config_path(Path(__file__).parent / "configs")
        .add_configurer(TickerConfigurer())
        .run()
    )


if __name__ == "__main__":
    asyncio.run(main())
