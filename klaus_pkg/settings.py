#!/usr/bin/env python3
"""
Settings loader for Klaus static site generator.
Supports configuration from klaus.yml, klaus.yaml, or klaus.json files.
"""

import os
import json
import yaml
from typing import Dict, Any, Optional


class KlausSettings:
    """Load and manage Klaus configuration settings."""

    # Default configuration
    DEFAULT_SETTINGS = {
        'content': 'content',
        'templates': 'templates',
        'output': 'published',
        'template': 'main.html',
        'stylesheet': 'main.css',
        'max_image_size': 1000,
        'upscale_images': False,
        'strict': False,
        'log_dir': 'logs'
    }

    # Config file names to look for (in order of preference)
    CONFIG_FILES = ['klaus.yml', 'klaus.yaml', 'klaus.json']

    def __init__(self, config_dir: str = None):
        """
        Initialize settings loader.

        Args:
            config_dir: Directory to look for config files. Defaults to current directory.
        """
        self.config_dir = config_dir or os.getcwd()
        self.settings = self.DEFAULT_SETTINGS.copy()
        self.config_file_path = None

    def load_settings(self) -> Dict[str, Any]:
        """
        Load settings from configuration file if it exists.

        Returns:
            Dictionary of configuration settings
        """
        config_file = self._find_config_file()

        if config_file:
            self.config_file_path = config_file
            loaded_settings = self._load_config_file(config_file)
            if loaded_settings:
                if not isinstance(loaded_settings, dict):
                    raise ValueError(f"Configuration file {config_file} must contain a mapping")
                # Merge with defaults, giving preference to loaded settings
                self.settings.update(loaded_settings)
                print(f"Loaded configuration from: {os.path.relpath(config_file)}")

        self.validate(self.settings)
        return self.settings.copy()

    def _find_config_file(self) -> Optional[str]:
        """
        Find the first available configuration file.

        Returns:
            Path to config file or None if not found
        """
        for filename in self.CONFIG_FILES:
            config_path = os.path.join(self.config_dir, filename)
            if os.path.exists(config_path):
                return config_path
        return None

    def _load_config_file(self, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from a file.

        Args:
            config_path: Path to the configuration file

        Returns:
            Dictionary of configuration settings
        """
        try:
            file_ext = os.path.splitext(config_path)[1].lower()

            with open(config_path, 'r', encoding='utf-8') as f:
                if file_ext in ['.yml', '.yaml']:
                    return yaml.safe_load(f) or {}
                elif file_ext == '.json':
                    return json.load(f) or {}
                else:
                    raise ValueError(f"Unsupported config file format: {file_ext}")
        except FileNotFoundError:
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        except PermissionError:
            raise PermissionError(f"Permission denied reading configuration file: {config_path}")
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file {config_path}: {e}")
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file {config_path}: {e}")
        except (IOError, OSError) as e:
            raise IOError(f"Error reading configuration file {config_path}: {e}")

    @staticmethod
    def validate(settings: Dict[str, Any]) -> None:
        """Reject settings the publisher cannot work with."""
        max_size = settings.get('max_image_size')
        if isinstance(max_size, bool) or not isinstance(max_size, int) or max_size <= 0:
            raise ValueError(f"max_image_size must be a positive integer, got {max_size!r}")

        for key in ('content', 'templates', 'output', 'template', 'stylesheet'):
            if not isinstance(settings.get(key), str) or not settings[key]:
                raise ValueError(f"{key} must be a non-empty path")

    def create_sample_config(self, file_format: str = 'yml') -> str:
        """
        Create a sample configuration file.

        Args:
            file_format: Format for config file ('yml', 'yaml', or 'json')

        Returns:
            Path to created sample config file
        """
        if file_format not in ['yml', 'yaml', 'json']:
            raise ValueError(f"Unsupported config file format: {file_format}")

        filename = f'klaus.{file_format}'
        config_path = os.path.join(self.config_dir, filename)

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                if file_format in ['yml', 'yaml']:
                    # Custom YAML output with comments
                    f.write("# Klaus Configuration File\n")
                    f.write("# Every key is optional; the values below are the defaults.\n\n")
                    f.write("# Paths\n")
                    f.write("content: content\n")
                    f.write("templates: templates\n")
                    f.write("output: published\n")
                    f.write("template: main.html    # page template inside templates/\n")
                    f.write("stylesheet: main.css   # copied to the output root\n\n")
                    f.write("# Images\n")
                    f.write("max_image_size: 1000   # JPEG bounding box in pixels\n")
                    f.write("upscale_images: false  # enlarge JPEGs smaller than the box\n\n")
                    f.write("# Errors and logging\n")
                    f.write("strict: false          # stop at the first file that fails\n")
                    f.write("log_dir: logs\n")
                elif file_format == 'json':
                    json.dump(self.DEFAULT_SETTINGS, f, indent=2)
        except PermissionError:
            raise PermissionError(f"Permission denied creating configuration file: {config_path}")
        except (IOError, OSError) as e:
            raise IOError(f"Error writing configuration file {config_path}: {e}")

        return config_path

    def merge_with_args(self, args_dict: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge configuration settings with overrides.
        Overrides take precedence over config file settings.

        Args:
            args_dict: Dictionary of overriding values

        Returns:
            Merged configuration dictionary
        """
        merged = self.settings.copy()

        # Override with non-None values
        for key, value in args_dict.items():
            if value is not None:
                merged[key] = value

        self.validate(merged)
        return merged
