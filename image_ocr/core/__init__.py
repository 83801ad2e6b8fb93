from .config_manager import ConfigManager, get_config_manager
from .errors import AcquisitionError, ClipboardError, ImageOcrError, StreamOpenError
from .logging_config import configure_logging
from .logging_utils import get_module_logger
from .settings import DEFAULT_ENGINE_PATH, OcrSettings, SettingsStore

__all__ = [
    'AcquisitionError',
    'ClipboardError',
    'ConfigManager',
    'DEFAULT_ENGINE_PATH',
    'ImageOcrError',
    'OcrSettings',
    'SettingsStore',
    'StreamOpenError',
    'configure_logging',
    'get_config_manager',
    'get_module_logger',
]
