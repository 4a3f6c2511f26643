"""
Static asset copying and CSS/JS minification.
"""

import logging
import os
import shutil
from typing import Iterable, List

import csscompressor
import rjsmin

logger = logging.getLogger('Polypress')


def copy_assets(asset_dirs: Iterable[str], output_dir: str) -> List[str]:
    """
    Copy each asset directory into the output root under its own name.

    Returns the destination directories that were written. A missing source
    directory is skipped.
    """
    copied = []
    for source in asset_dirs or []:
        if not source or not os.path.isdir(source):
            logger.debug(f"Asset directory not found, skipping: {source}")
            continue
        destination = os.path.join(output_dir, os.path.basename(os.path.normpath(source)))
        if os.path.abspath(destination) == os.path.abspath(source):
            logger.info(f"Asset directory {source} is already in the output tree, skipping copy")
            continue
        try:
            shutil.copytree(source, destination, dirs_exist_ok=True)
            copied.append(destination)
            logger.info(f"Copied assets from {source}")
        except (IOError, OSError, shutil.Error) as e:
            logger.error(f"Failed to copy assets from {source}: {e}")
    return copied


def minify_assets(directory: str) -> int:
    """Write ``.min.css``/``.min.js`` siblings for every CSS and JS file below ``directory``."""
    minified = 0
    for root, _dirs, files in os.walk(directory):
        for file in files:
            if file.endswith('.css') and not file.endswith('.min.css'):
                compress, suffix = csscompressor.compress, '.css'
            elif file.endswith('.js') and not file.endswith('.min.js'):
                compress, suffix = rjsmin.jsmin, '.js'
            else:
                continue
            source_path = os.path.join(root, file)
            minified_path = os.path.join(root, file[:-len(suffix)] + '.min' + suffix)
            try:
                with open(source_path, 'r', encoding='utf-8') as f:
                    content = f.read()
                with open(minified_path, 'w', encoding='utf-8') as f:
                    f.write(compress(content))
                minified += 1
                logger.debug(f"Minified {source_path}")
            except (IOError, OSError, UnicodeDecodeError) as e:
                logger.error(f"Failed to minify {source_path}: {e}")
    return minified
