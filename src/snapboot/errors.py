"""
Error taxonomy for the boot framework.

Every failure raised by the registry, the auto-configuration engine and the
application lifecycle is one of three sibling variants of :class:`BootError`:

* :class:`ConfigError` - configuration or property problems.
* :class:`ComponentError` - a component operation failed (register, create,
  initialize, start or stop).
* :class:`DependencyError` - the dependency graph is cyclic or incomplete.

Callers dispatch on the class (or on :attr:`BootError.kind`) and reach the
underlying cause through :meth:`BootError.unwrap`.
"""
from datetime import datetime
from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Discriminator shared by all boot errors."""
    CONFIG = "config"
    COMPONENT = "component"
    DEPENDENCY = "dependency"


class ComponentOperation(str, Enum):
    """Component operations that can fail."""
    REGISTER = "register"
    CREATE = "create"
    INITIALIZE = "initialize"
    START = "start"
    STOP = "stop"


class BootError(Exception):
    """Base class for all boot errors."""
    kind: ErrorKind

    def __init__(
            self,
            message: str,
            *,
            component: Optional[str] = None,
            cause: Optional[BaseException] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.component = component
        self.cause = cause
        self.timestamp = datetime.now()
        if cause is not None:
            self.__cause__ = cause

    def unwrap(self) -> Optional[BaseException]:
        """Return the wrapped cause, if any."""
        return self.cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message


class ConfigError(BootError):
    """Raised on invalid configuration, properties or lifecycle usage."""
    kind = ErrorKind.CONFIG


class ComponentError(BootError):
    """Raised when a component operation fails."""
    kind = ErrorKind.COMPONENT

    def __init__(
            self,
            component: str,
            operation: "ComponentOperation | str",
            message: str,
            *,
            cause: Optional[BaseException] = None
    ) -> None:
        super().__init__(message, component=component, cause=cause)
        self.operation = ComponentOperation(operation)

    def __str__(self) -> str:
        text = f"component {self.component} {self.operation.value}: {self.message}"
        if self.cause is not None:
            return f"{text}: {self.cause}"
        return text


class DependencyError(BootError):
    """Raised when dependencies are cyclic or missing."""
    kind = ErrorKind.DEPENDENCY

    def __init__(
            self,
            message: str,
            chain: Optional[list[str]] = None,
            *,
            component: Optional[str] = None,
            cause: Optional[BaseException] = None
    ) -> None:
        super().__init__(message, component=component, cause=cause)
        self.chain = list(chain or [])

    def __str__(self) -> str:
        text = super().__str__()
        if self.chain:
            return f"{text} (chain: {' -> '.join(self.chain)})"
        return text


class ComponentExists(LookupError):
    """A component with the same name is already registered."""


class ComponentNotFound(LookupError):
    """No component is registered under the requested name."""


class NotBeanProvider(TypeError):
    """The component does not expose beans."""


class HealthCheckFailed(RuntimeError):
    """A component reported itself unhealthy."""
