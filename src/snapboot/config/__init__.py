from .loaders import load_file
from .models import BootSettings
from .properties import (
    PropertySource,
    DefaultPropertySource,
    FilePropertySource,
    load_environment_variables,
)
from .setup import setup_logging, parse_level, JsonFormatter
