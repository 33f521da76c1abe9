"""
Configuration for TIFF to NIfTI conversion.
"""

from dataclasses import asdict, dataclass, field, fields
from typing import Dict, Any, List, Optional
from pathlib import Path
import json
import yaml


@dataclass
class ConversionConfig:
    """Settings shared by every conversion a converter performs."""

    # Stack selection
    stack_group: int = 0  # group converted by convert_file when none is given
    group_slices: bool = True  # False: keep all pages, skip those unlike the first
    write_all_groups: bool = False  # convert_file also writes thumbnails etc. as _stack{n}

    # Header text and transform codes
    description: str = ''
    aux_file: str = ''
    qform_code: int = 0
    sform_code: int = 1

    # File handling
    input_extensions: List[str] = field(default_factory=lambda: ['.tif', '.tiff', '.lsm'])
    output_suffix: str = '.nii'
    overwrite: bool = True

    # Logging
    verbose: bool = False
    log_level: str = 'INFO'

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary.

        Returns:
            Dict[str, Any]: Configuration as dictionary.
        """
        return asdict(self)

    def save(self, filepath: Path, format: str = 'auto') -> None:
        """Save configuration to file.

        Args:
            filepath: Path to save configuration.
            format: File format ('json', 'yaml', or 'auto' to detect from extension).
        """
        filepath = Path(filepath)

        if format == 'auto':
            format = 'yaml' if filepath.suffix.lower() in ['.yml', '.yaml'] else 'json'

        config_dict = self.to_dict()

        with open(filepath, 'w') as f:
            if format == 'yaml':
                yaml.dump(config_dict, f, default_flow_style=False, indent=2)
            else:
                json.dump(config_dict, f, indent=2)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'ConversionConfig':
        """Build a configuration, ignoring keys that are not config fields."""
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in (data or {}).items() if key in known})

    @classmethod
    def load(cls, filepath: Path) -> 'ConversionConfig':
        """Load configuration from JSON or YAML file.

        Args:
            filepath: Path to configuration file.

        Returns:
            ConversionConfig: Loaded configuration object.
        """
        filepath = Path(filepath)

        with open(filepath, 'r') as f:
            if filepath.suffix.lower() in ['.yml', '.yaml']:
                data = yaml.safe_load(f)
            else:
                data = json.load(f)

        return cls.from_dict(data)
