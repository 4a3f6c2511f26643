#!/usr/bin/env python3
"""
Settings loader for Polypress.
Supports configuration from polypress.yml, polypress.yaml or polypress.json files.
"""

import copy
import json
import os
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigError
from .utils import deep_merge


class PolypressSettings:
    """Load and manage Polypress configuration settings."""

    # Default configuration
    DEFAULT_SETTINGS = {
        'site': {
            'title': 'My Polyglot Blog',
            'description': '',
            'author': '',
            'url': 'http://localhost:8080',
        },
        'content': 'content',
        'system_dir': 'system',
        'templates': 'templates',
        'output': 'public',
        'assets': ['styles'],
        'minify': True,
        'log_dir': 'logs',
        'pagination': {
            'page_size': 10,
        },
        'navigation': {
            'categories': {
                'top_level': [],
                'more_label': 'More',
                'default_category_name': 'Other',
                'backgrounds': {},
            },
        },
        'seo': {
            'change_frequency': 'weekly',
            'home_priority': 1.0,
            'default_priority': 0.6,
        },
        'advertising': {
            'publisher_id': '',
            'disabled': False,
        },
        'footer': {
            'note': '',
            'icp': {'text': '', 'link': ''},
            'social': [],
        },
        'analytics': {
            'head': '',
            'body_end': '',
        },
        'i18n': {
            'default_language': None,
            'show_language_switcher': True,
            'languages': {},
        },
    }

    # Config file names to look for (in order of preference)
    CONFIG_FILES = ['polypress.yml', 'polypress.yaml', 'polypress.json']

    # Command-line argument name -> dotted settings key
    ARGUMENT_KEYS = {
        'content': 'content',
        'templates': 'templates',
        'output': 'output',
        'page_size': 'pagination.page_size',
        'site_url': 'site.url',
        'site_title': 'site.title',
        'minify': 'minify',
    }

    def __init__(self, config_dir: str = None):
        """
        Initialize settings loader.

        Args:
            config_dir: Directory to look for config files. Defaults to current directory.
        """
        self.config_dir = config_dir or os.getcwd()
        self.settings = copy.deepcopy(self.DEFAULT_SETTINGS)
        self.config_file_path = None

    def load_settings(self, config_file: Optional[str] = None) -> Dict[str, Any]:
        """
        Load settings from a configuration file if one exists.

        Args:
            config_file: Explicit path; when omitted the config directory is searched.

        Returns:
            Dictionary of configuration settings

        Raises:
            ConfigError: the file exists but cannot be parsed.
        """
        config_file = config_file or self._find_config_file()

        if config_file:
            self.config_file_path = config_file
            loaded_settings = self._load_config_file(config_file)
            if loaded_settings:
                # Merge with defaults, giving preference to loaded settings
                self.settings = deep_merge(self.settings, loaded_settings)
                print(f"Loaded configuration from: {os.path.relpath(config_file)}")

        return copy.deepcopy(self.settings)

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
        file_ext = os.path.splitext(config_path)[1].lower()
        if file_ext not in ['.yml', '.yaml', '.json']:
            raise ConfigError(f"Unsupported config file format: {file_ext}")

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                if file_ext in ['.yml', '.yaml']:
                    data = yaml.safe_load(f)
                else:
                    data = json.load(f)
        except FileNotFoundError:
            raise ConfigError(f"Configuration file not found: {config_path}")
        except PermissionError:
            raise ConfigError(f"Permission denied reading configuration file: {config_path}")
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in configuration file {config_path}: {e}")
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in configuration file {config_path}: {e}")
        except (IOError, OSError) as e:
            raise ConfigError(f"Error reading configuration file {config_path}: {e}")

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration file must contain a mapping: {config_path}")
        return data

    def create_sample_config(self, file_format: str = 'yml') -> str:
        """
        Create a sample configuration file.

        Args:
            file_format: Format for config file ('yml', 'yaml', or 'json')

        Returns:
            Path to created sample config file
        """
        sample_config = {
            'site': {
                'title': 'My Polyglot Blog',
                'description': 'Notes in more than one language',
                'author': 'Site Author',
                'url': 'https://example.com',
            },
            'content': 'content',
            'templates': 'templates',
            'output': 'public',
            'assets': ['styles'],
            'pagination': {'page_size': 10},
            'navigation': {
                'categories': {
                    'top_level': ['Tech', 'Life'],
                    'more_label': 'More',
                    'default_category_name': 'Other',
                },
            },
            'seo': {'change_frequency': 'weekly', 'home_priority': 1.0, 'default_priority': 0.6},
            'i18n': {
                'default_language': 'en',
                'languages': {
                    'en': {
                        'label': 'English',
                        'locale': 'en-US',
                        'translations': {
                            'nav': {'home': 'Home', 'about': 'About'},
                            'content': {'untitled': 'Untitled'},
                            'tags': {'description': '{{ count }} posts', 'pageTitleSuffix': 'Tags'},
                            'categories': {'description': '{{ count }} posts', 'pageTitleSuffix': 'Categories'},
                        },
                    },
                    'zh': {
                        'label': '中文',
                        'locale': 'zh-CN',
                        'navigation': {'more_label': '更多', 'default_category_name': '其它'},
                        'translations': {
                            'nav': {'home': '首页', 'about': '关于'},
                            'formats': {'date': '%Y年%m月%d日'},
                        },
                    },
                },
            },
        }

        filename = f'polypress.{file_format}'
        config_path = os.path.join(self.config_dir, filename)

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                if file_format in ['yml', 'yaml']:
                    f.write("# Polypress Configuration File\n")
                    f.write("# Configure your multi-language blog here\n\n")
                    yaml.safe_dump(sample_config, f, allow_unicode=True, sort_keys=False)
                elif file_format == 'json':
                    json.dump(sample_config, f, indent=2, ensure_ascii=False)
                else:
                    raise ConfigError(f"Unsupported config file format: {file_format}")
        except PermissionError:
            raise ConfigError(f"Permission denied creating configuration file: {config_path}")
        except (IOError, OSError) as e:
            raise ConfigError(f"Error writing configuration file {config_path}: {e}")

        return config_path

    def merge_with_args(self, args_dict: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge configuration settings with command-line arguments.
        Command-line arguments take precedence over config file settings.

        Args:
            args_dict: Dictionary of command-line arguments

        Returns:
            Merged configuration dictionary
        """
        merged = copy.deepcopy(self.settings)

        # Override with non-None command line arguments
        for key, value in args_dict.items():
            if value is None or key not in self.ARGUMENT_KEYS:
                continue
            target = merged
            parts = self.ARGUMENT_KEYS[key].split('.')
            for part in parts[:-1]:
                target = target.setdefault(part, {})
            target[parts[-1]] = value

        return merged
