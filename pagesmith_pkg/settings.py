#!/usr/bin/env python3
"""
Settings loader for Pagesmith static site generator.
Supports configuration from pagesmith.yml, pagesmith.yaml, or pagesmith.json files.
"""

import os
import json
import yaml
from typing import Dict, Any, Optional

CONFIG_LOADERS = {
    '.yml': yaml.safe_load,
    '.yaml': yaml.safe_load,
    '.json': json.load,
}


class PageSmithSettings:
    """Load and manage Pagesmith configuration settings."""

    # Default configuration
    DEFAULT_SETTINGS = {
        'source': 'src',
        'output': 'build',
        'header': 'header.html',
        'footer': 'footer.html',
        'base_url': '',
        'parser': 'cat',
        'feed_title': None,
        'owner': None,
        'archive': False,
        'feed': False,
        'news': None,
        'hide_user': False,
        'log_dir': None,
    }

    # Config file names to look for (in order of preference)
    CONFIG_FILES = ['pagesmith.yml', 'pagesmith.yaml', 'pagesmith.json']

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
        Read the first configuration file found over the defaults.

        A file that cannot be read or parsed is reported and ignored, as are
        keys Pagesmith does not know.

        Returns:
            Dictionary of configuration settings
        """
        self.config_file_path = self._find_config_file()
        if self.config_file_path is None:
            return self.settings.copy()

        try:
            loaded = self._load_config_file(self.config_file_path)
        except (ValueError, OSError) as e:
            print(f"Warning: Failed to load config file {self.config_file_path}: {e}")
            return self.settings.copy()

        unknown = sorted(set(loaded) - set(self.DEFAULT_SETTINGS))
        if unknown:
            print(f"Warning: Ignoring unknown settings in {self.config_file_path}: {', '.join(unknown)}")

        self.settings.update((key, value) for key, value in loaded.items() if key in self.DEFAULT_SETTINGS)
        print(f"Loaded configuration from: {os.path.relpath(self.config_file_path)}")
        return self.settings.copy()

    def _find_config_file(self) -> Optional[str]:
        candidates = (os.path.join(self.config_dir, name) for name in self.CONFIG_FILES)
        return next((path for path in candidates if os.path.isfile(path)), None)

    def _load_config_file(self, config_path: str) -> Dict[str, Any]:
        """Parse a configuration file into a mapping, raising ValueError on bad content."""
        file_ext = os.path.splitext(config_path)[1].lower()
        loader = CONFIG_LOADERS.get(file_ext)
        if loader is None:
            raise ValueError(f"Unsupported config file format: {file_ext}")

        with open(config_path, 'r', encoding='utf-8') as f:
            try:
                data = loader(f)
            except (yaml.YAMLError, json.JSONDecodeError) as e:
                raise ValueError(f"Invalid {file_ext[1:].upper()} in configuration file: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError("configuration must be a mapping of setting names to values")
        return data

    def create_sample_config(self, file_format: str = 'yml') -> str:
        """
        Create a sample configuration file.

        Args:
            file_format: Format for config file ('yml', 'yaml', or 'json')

        Returns:
            Path to created sample config file
        """
        filename = f'pagesmith.{file_format}'
        config_path = os.path.join(self.config_dir, filename)

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                if file_format in ['yml', 'yaml']:
                    f.write("# Pagesmith Configuration File\n\n")
                    f.write("# Site information\n")
                    f.write("base_url: https://example.com\n")
                    f.write("feed_title: My Static Site\n")
                    f.write("# owner: site-owner\n\n")
                    f.write("# Build settings\n")
                    f.write("source: src\n")
                    f.write("output: build\n")
                    f.write("header: header.html\n")
                    f.write("footer: footer.html\n")
                    f.write("parser: pagesmith-markdown\n\n")
                    f.write("# Generated pages\n")
                    f.write("archive: true\n")
                    f.write("feed: true\n")
                    f.write("news: home  # home, page, or leave empty\n\n")
                    f.write("# Privacy\n")
                    f.write("hide_user: false\n")
                elif file_format == 'json':
                    sample_config = {
                        'base_url': 'https://example.com',
                        'feed_title': 'My Static Site',
                        'source': 'src',
                        'output': 'build',
                        'header': 'header.html',
                        'footer': 'footer.html',
                        'parser': 'pagesmith-markdown',
                        'archive': True,
                        'feed': True,
                        'news': 'home',
                        'hide_user': False,
                    }
                    json.dump(sample_config, f, indent=2)
                else:
                    raise ValueError(f"Unsupported config file format: {file_format}")
        except PermissionError:
            raise PermissionError(f"Permission denied creating configuration file: {config_path}")

        return config_path

    def merge_with_args(self, args_dict: Dict[str, Any]) -> Dict[str, Any]:
        """Overlay command-line values on the loaded settings; unset (None) options keep the file's value."""
        overrides = {key: value for key, value in args_dict.items()
                     if value is not None and key in self.DEFAULT_SETTINGS}
        return {**self.settings, **overrides}
