#!/usr/bin/env python3
"""
Command-line interface for Polypress - multi-language static blog generator.
"""

import os
import sys
import argparse
import time
import shutil
from typing import Dict, Optional

from . import __version__
from .core import Polypress
from .errors import PolypressError
from .settings import PolypressSettings

PACKAGE_TEMPLATES = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'templates')

SAMPLE_POST = """---
title: "Hello, Polypress"
date: 2025-01-15
category: Tech
tags:
  - Getting Started
seo:
  keywords: polypress, static site, multi-language
---

# Hello, Polypress

This is the first post of your new site. Posts live under `content/`; put a
language code directory such as `content/zh/` in front of a file to publish it
under that language's URL prefix.
"""

SAMPLE_POST_ZH = """---
title: "你好，Polypress"
date: 2025-01-15
category: 技术
tags:
  - 入门
---

这是中文站点的第一篇文章。
"""

SAMPLE_ABOUT = """---
title: About
---

Pages under `content/system/` are rendered like posts but stay out of the
index, the feeds and the tag and category listings.
"""

SAMPLE_STYLES = """body {
    max-width: 48rem;
    margin: 0 auto;
    padding: 1rem;
    font-family: system-ui, sans-serif;
    line-height: 1.6;
}
"""


def _write_if_missing(path: str, content: str, label: str) -> None:
    if os.path.exists(path):
        print(f"{label} already exists: {os.path.relpath(path)}")
        return
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(content)
    print(f"Created {label.lower()}: {os.path.relpath(path)}")


def create_starter_structure(base_dir: Optional[str] = None) -> None:
    """Create complete starter structure with templates, content, and styles."""
    current_dir = base_dir or os.getcwd()

    directories = [
        'templates',
        'content',
        'content/zh',
        'content/system',
        'styles',
    ]

    for directory in directories:
        dir_path = os.path.join(current_dir, directory)
        if os.path.exists(dir_path):
            print(f"Directory already exists: {directory}")
        else:
            os.makedirs(dir_path, exist_ok=True)
            print(f"Created directory: {directory}")

    # Copy template files from package
    template_dest = os.path.join(current_dir, 'templates')
    for template_file in sorted(os.listdir(PACKAGE_TEMPLATES)):
        if not template_file.endswith('.html'):
            continue
        dest_path = os.path.join(template_dest, template_file)
        if os.path.exists(dest_path):
            print(f"Template already exists: templates/{template_file}")
        else:
            shutil.copy2(os.path.join(PACKAGE_TEMPLATES, template_file), dest_path)
            print(f"Created template: templates/{template_file}")

    _write_if_missing(os.path.join(current_dir, 'content', 'hello-polypress.md'), SAMPLE_POST, 'Sample post')
    _write_if_missing(os.path.join(current_dir, 'content', 'zh', 'hello-polypress.md'), SAMPLE_POST_ZH, 'Sample post')
    _write_if_missing(os.path.join(current_dir, 'content', 'system', 'about.md'), SAMPLE_ABOUT, 'Sample page')
    _write_if_missing(os.path.join(current_dir, 'styles', 'main.css'), SAMPLE_STYLES, 'Stylesheet')

    print("\nStarter structure created successfully!")
    print("\nNext steps:")
    print("1. Edit the configuration file (polypress.yml)")
    print("2. Customize templates in the 'templates/' directory")
    print("3. Add your content to 'content/' (one directory per extra language)")
    print("4. Run 'polypress' to build your site")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Polypress - Multi-language Static Blog Generator')
    parser.add_argument('--content', type=str,
                        help='Content directory containing markdown files')
    parser.add_argument('--templates', type=str,
                        help='Templates directory')
    parser.add_argument('--output', type=str,
                        help='Output directory for generated site')
    parser.add_argument('--page-size', type=int,
                        help='Number of posts per index page')
    parser.add_argument('--site-url', type=str,
                        help='Site URL for RSS feeds, sitemaps and robots.txt')
    parser.add_argument('--site-title', type=str, help='Site title for metadata')
    parser.add_argument('--no-minify', action='store_true',
                        help='Write HTML, CSS and JS without minification')
    parser.add_argument('--init', type=str, choices=['yml', 'yaml', 'json'],
                        help='Create a sample configuration file and starter project')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def arguments_to_settings(args: argparse.Namespace) -> Dict:
    """Command-line values that should override the configuration file."""
    args_dict = {k: v for k, v in vars(args).items() if v is not None}
    args_dict.pop('init', None)
    if args_dict.pop('no_minify', False):
        args_dict['minify'] = False
    if 'page_size' in args_dict:
        args_dict['page_size'] = max(1, args_dict['page_size'])
    if 'output' in args_dict:
        args_dict['output'] = os.path.expanduser(args_dict['output'])
    return args_dict


def main(argv=None) -> None:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    try:
        # Handle init command
        if args.init:
            settings_loader = PolypressSettings()
            config_path = settings_loader.create_sample_config(args.init)
            print(f"Created sample configuration file: {config_path}")

            print("\nCreating starter project structure...")
            create_starter_structure()

            print("\nYour new Polypress site is ready!")
            print("Edit the configuration file and templates, then run 'polypress' to build your site.")
            return

        # Load settings from configuration file
        settings_loader = PolypressSettings()
        settings_loader.load_settings()

        # Command line arguments take precedence
        final_settings = settings_loader.merge_with_args(arguments_to_settings(args))

        overall_start_time = time.time()

        generator = Polypress(final_settings)
        generator.build()

        # Show build statistics
        total_time = time.time() - overall_start_time
        generator.logger.info(f"Site build completed in {total_time:.6f} seconds.")
        generator.logger.info(f"Total posts generated: {generator.posts_generated}")
        generator.logger.info(f"Total pages generated: {generator.pages_generated}")
        generator.logger.info(f"Total listing pages generated: {generator.listings_generated}")

    except PolypressError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
