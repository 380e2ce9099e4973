from .cache import CacheComponent, CacheFactory, CacheSettings
from .config import ConfigComponent, ConfigFactory
from .dbstore import DBStoreComponent, DBStoreFactory, DatabaseSettings
from .logger import LoggerComponent, LoggerFactory, LoggerSettings
from .web import WebComponent, WebFactory, WebSettings
