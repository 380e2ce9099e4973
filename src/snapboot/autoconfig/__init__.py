from .configurers import (
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
from .engine import AutoConfig, apply_default_properties
