from typing import Any, Dict

import yaml


def load_config(path: str = "config.yml") -> Dict[str, Any]:
    """
    Load a YAML configuration file.

    Args:
        path: Path to the YAML file

    Returns:
        Parsed mapping ({} for an empty file)

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the document root is not a mapping
    """
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: configuration root must be a mapping, got {type(data).__name__}")
    return data
