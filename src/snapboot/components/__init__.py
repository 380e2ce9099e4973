from .base import BaseComponent, BaseComponentFactory
from .protocols import Component, ComponentFactory
from .registry import ComponentRegistry
from .types import ComponentType, ComponentStatus
