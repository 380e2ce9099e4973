"""
Public API for the boot framework.

This module exports all public interfaces for consumers to use.
Import only from this module for stable API access.
"""

from .application import Application, AppState
from .autoconfig.configurers import (
    FactoryConfigurer,
    ConfigConfigurer,
    LoggerConfigurer,
    DBStoreConfigurer,
    CacheConfigurer,
    WebConfigurer,
    default_configurations,
    web_configurations,
    storage_configurations,
    full_configurations,
)
from .autoconfig.engine import AutoConfig, apply_default_properties
from .bootstrap import Boot
from .builtin import (
    CacheComponent,
    ConfigComponent,
    DBStoreComponent,
    LoggerComponent,
    WebComponent,
)
from .components.base import BaseComponent, BaseComponentFactory
from .components.conditions import (
    ConditionOperator,
    PropertyCondition,
    PropertyActivator,
    conditional_on_property,
    conditional_on_property_exists,
    conditional_on_missing_property,
)
from .components.protocols import (
    Component,
    ComponentFactory,
    AutoConfigurer,
    ComponentActivator,
    ComponentHealthChecker,
    Plugin,
)
from .components.registry import ComponentRegistry, RegistryMetrics, DefaultHealthChecker
from .components.schema import ConfigSchema, PropertySchema
from .components.types import ComponentType, ComponentStatus
from .config.loaders import load_file
from .config.models import BootSettings
from .config.properties import (
    PropertySource,
    DefaultPropertySource,
    FilePropertySource,
    load_environment_variables,
)
from .config.setup import setup_logging
from .context import ComponentContext
from .errors import (
    ErrorKind,
    BootError,
    ConfigError,
    ComponentError,
    DependencyError,
    ComponentOperation,
)
from .events import EventBus, Subscription
from .health import HealthChecker
from .metrics import ApplicationMetrics

__all__ = [
    # Application
    "Application",
    "AppState",
    "ApplicationMetrics",
    "Boot",
    "BootSettings",
    # Components
    "Component",
    "ComponentFactory",
    "ComponentType",
    "ComponentStatus",
    "ComponentContext",
    "BaseComponent",
    "BaseComponentFactory",
    "ComponentRegistry",
    "RegistryMetrics",
    "ComponentHealthChecker",
    "DefaultHealthChecker",
    "ConfigSchema",
    "PropertySchema",
    "Plugin",
    # Auto-configuration
    "AutoConfig",
    "AutoConfigurer",
    "ComponentActivator",
    "apply_default_properties",
    "FactoryConfigurer",
    "ConfigConfigurer",
    "LoggerConfigurer",
    "DBStoreConfigurer",
    "CacheConfigurer",
    "WebConfigurer",
    "default_configurations",
    "web_configurations",
    "storage_configurations",
    "full_configurations",
    "ConditionOperator",
    "PropertyCondition",
    "PropertyActivator",
    "conditional_on_property",
    "conditional_on_property_exists",
    "conditional_on_missing_property",
    # Built-in components
    "ConfigComponent",
    "LoggerComponent",
    "DBStoreComponent",
    "CacheComponent",
    "WebComponent",
    # Config
    "PropertySource",
    "DefaultPropertySource",
    "FilePropertySource",
    "load_environment_variables",
    "load_file",
    "setup_logging",
    # Events & health
    "EventBus",
    "Subscription",
    "HealthChecker",
    # Errors
    "ErrorKind",
    "BootError",
    "ConfigError",
    "ComponentError",
    "DependencyError",
    "ComponentOperation",
]
