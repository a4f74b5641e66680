# ocifsync/utils/__init__.py

from .config_loader import OcifSyncConfig, load_config
from .correlation import get_correlation_id, set_correlation_id
from .datetime_utils import convert_ocif_to_iso, format_for_ocif, is_ocif_timestamp
from .file_io import get_data
from .logger import log_error, log_info, setup_logger
from .xml_parser import XmlnsAttribute, build_xml, parse_xml

__all__: list[str] = [
    # config_loader.py
    'OcifSyncConfig',
    # xml_parser.py
    'XmlnsAttribute',
    'build_xml',
    # datetime_utils.py
    'convert_ocif_to_iso',
    'format_for_ocif',
    # correlation.py
    'get_correlation_id',
    # file_io.py
    'get_data',
    'is_ocif_timestamp',
    'load_config',
    # logger.py
    'log_error',
    'log_info',
    'parse_xml',
    'set_correlation_id',
    'setup_logger',
]
