"""Configuration management for viewpoint design."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import yaml

from .exceptions import ConfigurationError
from .models import Approach, RestrictionEnzyme


@dataclass
class ViewPointConfig:
    """Design parameters shared by every viewpoint of a batch."""

    enzymes: List[RestrictionEnzyme] = field(default_factory=list)
    approach: Approach = Approach.SIMPLE
    size_up: int = 5000
    size_down: int = 1500
    min_fragment_size: int = 120
    probe_length: int = 120
    min_bait_count: int = 1
    min_gc_content: float = 0.35
    max_gc_content: float = 0.65
    max_repeat_content: float = 0.6
    max_mean_kmer_alignability: int = 10
    margin_size: int = 250
    allow_unbalanced_margins: bool = True
    allow_patching: bool = False
    kmer_size: int = 50
    mean_fragment_length: Optional[float] = None
    threads: int = 1
    log_level: str = "INFO"

    def __post_init__(self):
        """Validate configuration after initialization."""
        self.enzymes = [
            e if isinstance(e, RestrictionEnzyme) else RestrictionEnzyme.from_string(e)
            for e in self.enzymes
        ]
        if isinstance(self.approach, str):
            try:
                self.approach = Approach(self.approach.lower())
            except ValueError:
                raise ConfigurationError(f"Unknown approach: {self.approach}", parameter="approach")

        if not self.enzymes:
            raise ConfigurationError("At least one restriction enzyme is required", parameter="enzymes")

        if not 0.0 <= self.min_gc_content <= self.max_gc_content <= 1.0:
            raise ConfigurationError(
                f"Invalid GC bounds: {self.min_gc_content}-{self.max_gc_content}",
                parameter="min_gc_content"
            )

        for name in ("size_up", "size_down", "probe_length", "min_bait_count",
                     "margin_size", "kmer_size", "threads"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"Invalid {name}: {getattr(self, name)}", parameter=name)

        if self.min_fragment_size < 0:
            raise ConfigurationError(f"Invalid min_fragment_size: {self.min_fragment_size}")

        if self.probe_length < self.kmer_size:
            raise ConfigurationError(
                f"Probe length ({self.probe_length}) is shorter than k-mer size ({self.kmer_size})",
                parameter="probe_length"
            )

        if self.mean_fragment_length is not None and self.mean_fragment_length <= 0:
            raise ConfigurationError(
                f"Invalid mean_fragment_length: {self.mean_fragment_length}",
                parameter="mean_fragment_length"
            )

    @staticmethod
    def read_yaml(yaml_file: Path) -> dict:
        """Read raw configuration values from a YAML file."""
        yaml_file = Path(yaml_file)
        if not yaml_file.exists():
            raise ConfigurationError(f"Config file not found: {yaml_file}")

        try:
            with open(yaml_file, 'r') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML config: {e}", config_file=str(yaml_file))

        if not isinstance(data, dict):
            raise ConfigurationError("Config must be a mapping", config_file=str(yaml_file))
        return data

    @classmethod
    def from_yaml(cls, yaml_file: Path) -> "ViewPointConfig":
        """Load configuration from YAML file."""
        data = cls.read_yaml(yaml_file)
        try:
            return cls(**data)
        except TypeError as e:
            raise ConfigurationError(f"Invalid config parameters: {e}", config_file=str(yaml_file))

    @classmethod
    def from_args(cls, args: dict, base: Optional[dict] = None) -> "ViewPointConfig":
        """Create configuration from command-line arguments.

        Args:
            args: Parsed arguments (e.g. ``vars(parser.parse_args())``)
            base: Values loaded from a config file; arguments override them

        Returns:
            Validated configuration
        """
        # Map command-line argument names to config field names
        arg_mapping = {
            'enzyme': 'enzymes',
            'approach': 'approach',
            'size_up': 'size_up',
            'size_down': 'size_down',
            'min_fragment_size': 'min_fragment_size',
            'probe_length': 'probe_length',
            'min_baits': 'min_bait_count',
            'min_gc': 'min_gc_content',
            'max_gc': 'max_gc_content',
            'max_repeat': 'max_repeat_content',
            'max_alignability': 'max_mean_kmer_alignability',
            'margin_size': 'margin_size',
            'allow_unbalanced': 'allow_unbalanced_margins',
            'allow_patching': 'allow_patching',
            'kmer_size': 'kmer_size',
            'mean_fragment_length': 'mean_fragment_length',
            'threads': 'threads',
            'log_level': 'log_level',
        }

        config_args = dict(base or {})
        for arg_name, config_name in arg_mapping.items():
            if arg_name in args and args[arg_name] is not None:
                config_args[config_name] = args[arg_name]

        # Convert boolean flags (0/1 to bool)
        for flag in ('allow_unbalanced_margins', 'allow_patching'):
            if flag in config_args:
                config_args[flag] = bool(config_args[flag])

        try:
            return cls(**config_args)
        except TypeError as e:
            raise ConfigurationError(f"Invalid config parameters: {e}")
