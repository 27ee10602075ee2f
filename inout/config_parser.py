# inout/config_parser.py
import yaml
from typing import Dict, Any
from cerberus import Validator

from core.exceptions import ConfigError
from utils.logging_config import get_logger

logger = get_logger(__name__)

CONFIG_SCHEMA: Dict[str, Any] = {
    'data_type': {
        'type': 'string',
        'required': False,
        'allowed': ['real', 'complex', 'integer', 'binary'],
    },
    'order': {
        'type': 'string',
        'required': False,
        'allowed': ['row-major', 'col-major'],
    },
    'strategy': {
        'type': 'string',
        'required': False,
        'allowed': ['cycle', 'fused', 'scatter'],
    },
    'workers': {
        'type': 'integer',
        'required': False,
        'min': 1,
    },
    'reader': {
        'type': 'string',
        'required': False,
        'allowed': ['stream', 'mmap'],
    },
    'comments': {
        'type': 'string',
        'required': False,
        'allowed': ['leading', 'anywhere'],
    },
    'precision': {
        'type': 'dict',
        'required': False,
        'schema': {
            'float': {'type': 'integer', 'allowed': [32, 64], 'required': False},
            'index': {'type': 'integer', 'allowed': [32, 64], 'required': False},
        },
    },
    'log_file': {
        'type': 'string',
        'required': False,
        'nullable': True,
    },
}


def validate_schema(data: Dict[str, Any], schema: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate configuration data against a Cerberus schema.

    Returns:
        The validated document.

    Raises:
        ConfigError: If validation fails.
    """
    validator = Validator(schema)
    if not validator.validate(data):
        errors = validator.errors
        logger.error("Config schema validation errors: %s", errors)
        raise ConfigError("Config schema validation failed: " + str(errors))
    return validator.document


def parse_config(yaml_file: str) -> Dict[str, Any]:
    """
    Load and validate a pipeline configuration file.

    An empty file is a valid configuration with every key defaulted.

    Raises:
        ConfigError: On YAML syntax errors or schema violations.
        OSError: If the file cannot be opened.
    """
    with open(yaml_file, 'r') as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {yaml_file}: {e}") from e
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config root must be a mapping, got {type(data).__name__}")
    return validate_schema(data, CONFIG_SCHEMA)
