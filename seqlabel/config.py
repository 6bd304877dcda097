"""Manages the loading and validation of the decoder configuration.

This module defines the `Config` dataclass, the single place where the tag
schema, the beam search bounds and the worker count live. The `load_config`
function reads them from `config.yaml` and merges in the label alphabet from
the optional `labels.json` file the configuration points to.
"""
from __future__ import annotations
from dataclasses import dataclass, field
import json
from pathlib import Path
from typing import Any, Dict, Tuple

import yaml

from .schema import Schema, get_schema

__all__ = ["Config", "load_config"]


@dataclass
class Config:
    """
    A typed configuration object holding every decoding setting.

    Attributes:
        schema: Name of the tag schema ("iob" or "bieou").
        max_beam_size: The number of hypotheses kept at each step of the beam
                       search (-1 = unbounded).
        max_fork_size: The number of extensions generated from one hypothesis
                       at each step (-1 = unbounded).
        max_iterations: The longest sentence, in tokens, the beam search will
                        try before deferring to greedy decoding (-1 = unbounded).
        parallelization: Number of labelers (and worker threads) used when
                         labeling many sentences.
        labels: The label alphabet as textual annotations, in score-vector order.
        paths: Relative paths to auxiliary files, such as the labels file.
    """
    schema: str = "bieou"
    max_beam_size: int = 3
    max_fork_size: int = 5
    max_iterations: int = 10
    parallelization: int = 1
    labels: Tuple[str, ...] = ()
    paths: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name in ("max_beam_size", "max_fork_size", "max_iterations"):
            value = getattr(self, name)
            if value == 0 or value < -1:
                raise ValueError(f"{name} must be positive or -1 (unbounded), got {value}.")
        if self.parallelization < 1:
            raise ValueError(f"parallelization must be at least 1, got {self.parallelization}.")

    def decoder_kwargs(self) -> Dict[str, int]:
        return {
            "max_beam_size": self.max_beam_size,
            "max_fork_size": self.max_fork_size,
            "max_iterations": self.max_iterations,
        }

    def get_schema(self) -> Schema:
        return get_schema(self.schema)


def _load_labels_file(path: Path) -> Tuple[str, ...]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("labels")
    if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
        raise TypeError(f"Labels file {path} must hold a list of label strings.")
    return tuple(data)


def load_config(path: str = "config.yaml") -> Config:
    """
    Loads and validates the configuration file into a Config object.

    The YAML file may reference a labels file under `paths.labels`; it is
    resolved relative to the configuration file and, when present, takes
    precedence over a `labels` list written directly in the YAML.

    Args:
        path: The path to the `config.yaml` file.

    Returns:
        A fully populated and validated `Config` object.

    Raises:
        FileNotFoundError: If the specified `config.yaml` file cannot be found.
        ValueError: If the YAML cannot be parsed or a setting is out of range.
        TypeError: If the root of the YAML file is not a dictionary.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            y = yaml.safe_load(f)
    except FileNotFoundError:
        raise FileNotFoundError(f"Configuration file not found at: {path}")
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing YAML file at {path}: {e}")

    if y is None:
        y = {}
    if not isinstance(y, dict):
        raise TypeError(f"Configuration file {path} must be a dictionary.")

    decoder: Dict[str, Any] = y.get("decoder") or {}
    paths = {str(k): str(v) for k, v in (y.get("paths") or {}).items()}

    labels = tuple(str(item) for item in y.get("labels", []) or [])
    labels_path_str = paths.get("labels")
    if labels_path_str:
        full_labels_path = Path(path).parent / labels_path_str
        if full_labels_path.exists():
            labels = _load_labels_file(full_labels_path)
        else:
            print(f"Warning: Could not load labels file from {full_labels_path}. Using labels from {path}.")

    return Config(
        schema=str(y.get("schema", "bieou")),
        max_beam_size=int(decoder.get("max_beam_size", 3)),
        max_fork_size=int(decoder.get("max_fork_size", 5)),
        max_iterations=int(decoder.get("max_iterations", 10)),
        parallelization=int(y.get("parallelization", 1)),
        labels=labels,
        paths=paths,
    )
