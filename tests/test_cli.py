"""Tests for the command-line interface."""

import os
import sys
from pathlib import Path

import pytest
import yaml

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from polypress_pkg import cli


class TestArguments:
    """Test cases for argument handling."""

    def test_arguments_to_settings(self):
        """Test flags are converted to settings overrides."""
        args = cli.build_parser().parse_args(['--page-size', '0', '--no-minify', '--site-url', 'https://e.com'])
        overrides = cli.arguments_to_settings(args)
        assert overrides['page_size'] == 1
        assert overrides['minify'] is False
        assert overrides['site_url'] == 'https://e.com'
        assert 'no_minify' not in overrides
        assert 'init' not in overrides

    def test_minify_left_to_config_by_default(self):
        """Test minify is not overridden unless --no-minify is given."""
        overrides = cli.arguments_to_settings(cli.build_parser().parse_args([]))
        assert 'minify' not in overrides

    def test_version(self, capsys):
        """Test --version prints the package version."""
        with pytest.raises(SystemExit) as exc_info:
            cli.main(['--version'])
        assert exc_info.value.code == 0
        assert '1.0.0' in capsys.readouterr().out


class TestMain:
    """Test cases for main."""

    def test_init_creates_starter_project(self, temp_dir, monkeypatch):
        """Test --init writes a config file and a starter tree."""
        monkeypatch.chdir(temp_dir)
        cli.main(['--init', 'yml'])
        assert os.path.exists(os.path.join(temp_dir, 'polypress.yml'))
        for relative in ('templates/post.html', 'templates/index.html', 'templates/listing.html',
                         'templates/base.html', 'content/hello-polypress.md', 'content/zh/hello-polypress.md',
                         'content/system/about.md', 'styles/main.css'):
            assert os.path.exists(os.path.join(temp_dir, relative)), relative

    def test_init_then_build(self, temp_dir, monkeypatch):
        """Test the starter project builds with the generated configuration."""
        monkeypatch.chdir(temp_dir)
        cli.main(['--init', 'yml'])
        cli.main(['--output', 'site', '--no-minify'])
        assert os.path.exists(os.path.join(temp_dir, 'site', 'hello-polypress.html'))
        assert os.path.exists(os.path.join(temp_dir, 'site', 'zh', 'hello-polypress.html'))
        assert os.path.exists(os.path.join(temp_dir, 'site', 'about.html'))
        assert os.path.exists(os.path.join(temp_dir, 'site', 'styles', 'main.css'))
        robots = Path(temp_dir, 'site', 'robots.txt').read_text(encoding='utf-8')
        assert 'Sitemap: https://example.com/zh/sitemap.xml' in robots

    def test_build_error_exits(self, temp_dir, monkeypatch, capsys):
        """Test build failures print an error and exit with status 1."""
        monkeypatch.chdir(temp_dir)
        Path(temp_dir, 'polypress.yml').write_text(yaml.safe_dump({'log_dir': None}), encoding='utf-8')
        content = Path(temp_dir, 'content')
        content.mkdir()
        (content / 'bad.md').write_text('---\ntitle: [unclosed\n---\n', encoding='utf-8')
        with pytest.raises(SystemExit) as exc_info:
            cli.main([])
        assert exc_info.value.code == 1
        assert 'Error: [parse]' in capsys.readouterr().err

    def test_config_error_exits(self, temp_dir, monkeypatch, capsys):
        """Test an unreadable configuration file exits with status 1."""
        monkeypatch.chdir(temp_dir)
        Path(temp_dir, 'polypress.yml').write_text('site: [unclosed\n', encoding='utf-8')
        with pytest.raises(SystemExit) as exc_info:
            cli.main([])
        assert exc_info.value.code == 1
        assert 'Invalid YAML' in capsys.readouterr().err

    def test_template_error_exits(self, temp_dir, monkeypatch, capsys):
        """Test a template extending a missing parent exits with a render error."""
        monkeypatch.chdir(temp_dir)
        Path(temp_dir, 'polypress.yml').write_text(yaml.safe_dump({'log_dir': None}), encoding='utf-8')
        content = Path(temp_dir, 'content')
        content.mkdir()
        (content / 'post.md').write_text('---\ntitle: Post\n---\n\nBody.\n', encoding='utf-8')
        templates = Path(temp_dir, 'templates')
        templates.mkdir()
        for name in ('post.html', 'index.html', 'listing.html'):
            (templates / name).write_text('{% extends "base.html" %}', encoding='utf-8')
        with pytest.raises(SystemExit) as exc_info:
            cli.main([])
        assert exc_info.value.code == 1
        assert 'Error: [render]' in capsys.readouterr().err
