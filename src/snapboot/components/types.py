from enum import Enum


class ComponentType(Enum):
    """Component categories, in lifecycle order."""
    INFRASTRUCTURE = "infrastructure"
    DATA_SOURCE = "datasource"
    CORE = "core"
    WEB = "web"

    @property
    def rank(self) -> int:
        return _TYPE_ORDER.index(self)

    def __str__(self) -> str:
        return self.value


_TYPE_ORDER = (
    ComponentType.INFRASTRUCTURE,
    ComponentType.DATA_SOURCE,
    ComponentType.CORE,
    ComponentType.WEB,
)

# Order in which component groups are initialized and started.
TYPE_ORDER = _TYPE_ORDER


class ComponentStatus(Enum):
    """Lifecycle status of a single component."""
    CREATED = "Created"
    INITIALIZED = "Initialized"
    STARTED = "Started"
    STOPPED = "Stopped"
    FAILED = "Failed"
    UNKNOWN = "Unknown"

    def __str__(self) -> str:
        return self.value


# Legal forward path; FAILED is reachable from anywhere.
STATUS_PATH = (
    ComponentStatus.CREATED,
    ComponentStatus.INITIALIZED,
    ComponentStatus.STARTED,
    ComponentStatus.STOPPED,
)


def can_advance(current: ComponentStatus, new: ComponentStatus) -> bool:
    """Whether a component may move from ``current`` to ``new``."""
    if new is ComponentStatus.FAILED:
        return True
    if current is ComponentStatus.UNKNOWN:
        return new in STATUS_PATH
    if current is ComponentStatus.FAILED or new not in STATUS_PATH:
        return False
    return STATUS_PATH.index(new) >= STATUS_PATH.index(current)
