"""
Utility Functions Module

Provides helper functions for logging, configuration loading, file I/O,
identifier generation and timing used across the narrative-to-ontology
pipeline.
"""

import json
import logging
import random
import string
import time
from datetime import datetime
from functools import wraps
from pathlib import Path
from typing import Any, Dict, Union

import yaml


_ID_ALPHABET = string.digits + string.ascii_lowercase


def setup_logging(
    log_file: str = "narrative_ontology.log",
    level: int = logging.INFO,
    console_output: bool = True
) -> None:
    """
    Configure logging for the project.

    Args:
        log_file: Path to log file (None or empty disables file logging)
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        console_output: Whether to output logs to console

    Examples:
        >>> setup_logging("pipeline.log", logging.DEBUG)
    """
    handlers = []
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    if console_output:
        handlers.append(logging.StreamHandler())

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )

    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized. Log file: {log_file or '<none>'}")


def load_config(config_path: Union[str, Path] = "config/config.yaml") -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to YAML config file

    Returns:
        Configuration dictionary (empty if the file is empty)

    Raises:
        FileNotFoundError: If the file doesn't exist
        yaml.YAMLError: If the file contains invalid YAML

    Examples:
        >>> config = load_config("config/config.yaml")
        >>> max_distance = config['relation_extraction']['max_distance']
    """
    config_path = Path(config_path)

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f) or {}
        logging.info(f"Successfully loaded configuration from {config_path}")
        return config
    except FileNotFoundError:
        logging.error(f"Config file not found: {config_path}")
        raise
    except yaml.YAMLError as e:
        logging.error(f"Invalid YAML in {config_path}: {e}")
        raise


def load_json(file_path: Union[str, Path]) -> Any:
    """
    Load data from JSON file.

    Raises:
        FileNotFoundError: If file doesn't exist
        json.JSONDecodeError: If file contains invalid JSON
    """
    file_path = Path(file_path)

    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        logging.info(f"Successfully loaded JSON from {file_path}")
        return data
    except FileNotFoundError:
        logging.error(f"File not found: {file_path}")
        raise
    except json.JSONDecodeError as e:
        logging.error(f"Invalid JSON in {file_path}: {e}")
        raise


def save_json(
    data: Any,
    file_path: Union[str, Path],
    indent: int = 2,
    ensure_ascii: bool = False
) -> None:
    """
    Save data to JSON file, creating parent directories as needed.

    Args:
        data: Data to save (must be JSON serializable)
        file_path: Output file path
        indent: JSON indentation level
        ensure_ascii: Whether to escape non-ASCII characters

    Examples:
        >>> save_json({"key": "value"}, "output/result.json")
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(file_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=indent, ensure_ascii=ensure_ascii)
        logging.info(f"Successfully saved JSON to {file_path}")
    except Exception as e:
        logging.error(f"Error saving JSON to {file_path}: {e}")
        raise


def load_text_file(file_path: Union[str, Path]) -> str:
    """
    Load text from file.

    Args:
        file_path: Path to text file

    Returns:
        File contents as string
    """
    file_path = Path(file_path)

    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            text = f.read()
        logging.info(f"Successfully loaded text from {file_path}")
        return text
    except Exception as e:
        logging.error(f"Error loading text from {file_path}: {e}")
        raise


def save_text_file(text: str, file_path: Union[str, Path]) -> None:
    """Save text to file, creating parent directories as needed."""
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(file_path, 'w', encoding='utf-8') as f:
            f.write(text)
        logging.info(f"Successfully saved text to {file_path}")
    except Exception as e:
        logging.error(f"Error saving text to {file_path}: {e}")
        raise


def generate_id(prefix: str) -> str:
    """
    Create a process-unique identifier.

    The identifier combines the prefix, the current epoch time in
    milliseconds and nine random base-36 characters.

    Args:
        prefix: Kind of object the id belongs to (entity, relation, ...)

    Returns:
        Identifier string

    Examples:
        >>> generate_id("entity").startswith("entity-")
        True
    """
    millis = int(time.time() * 1000)
    suffix = ''.join(random.choices(_ID_ALPHABET, k=9))
    return f"{prefix}-{millis}-{suffix}"


def clamp_confidence(value: float) -> float:
    """
    Clamp a confidence score into [0, 1].

    Examples:
        >>> clamp_confidence(1.7)
        1.0
        >>> clamp_confidence(-0.2)
        0.0
    """
    return max(0.0, min(1.0, float(value)))


def get_timestamp() -> datetime:
    """Get the current local time."""
    return datetime.now()


def format_timestamp(value: datetime) -> str:
    """Render a timestamp as an ISO-8601 string."""
    return value.isoformat()


def time_function(func):
    """
    Decorator to time function execution.

    Logs the execution time of the decorated function at debug level.

    Args:
        func: Function to decorate

    Returns:
        Wrapped function
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        result = func(*args, **kwargs)
        elapsed = time.perf_counter() - start

        logger = logging.getLogger(func.__module__)
        logger.debug(f"{func.__name__} took {elapsed * 1000:.2f} ms")

        return result

    return wrapper


# Module-level logger
logger = logging.getLogger(__name__)
