"""Test configuration and fixtures for Polypress tests."""

import os
import shutil
import sys
import tempfile
from datetime import datetime
from pathlib import Path

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from polypress_pkg.content import Document, DocumentAttributes
from polypress_pkg.languages import LanguageRegistry
from polypress_pkg.routing import Router


LANGUAGE_CONFIG = {
    'i18n': {
        'default_language': 'en',
        'languages': {
            'en': {
                'label': 'English',
                'locale': 'en-US',
                'translations': {
                    'content': {'untitled': 'Untitled EN'},
                    'nav': {'home': 'Home'},
                    'tags': {'description': '{{ count }} posts tagged'},
                },
            },
            'zh': {
                'label': '中文',
                'locale': 'zh-CN',
                'navigation': {'default_category_name': '其它', 'more_label': '更多'},
                'translations': {
                    'nav': {'home': '首页'},
                },
            },
        },
    },
}


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def content_dir(temp_dir):
    """Create a two-language content tree with system pages."""
    content_dir = Path(temp_dir) / 'content'
    (content_dir / 'zh').mkdir(parents=True)
    (content_dir / 'system' / 'zh').mkdir(parents=True)

    (content_dir / 'hello.md').write_text("""---
title: Hello World
date: 2024-01-02
category: Tech
tags: [python, web]
seo:
  keywords: hello, world
---

# Hello World

First post body.
""", encoding='utf-8')

    (content_dir / 'second.md').write_text("""---
title: Second Post
date: 2024-01-03
tags: python
---

Second post body.
""", encoding='utf-8')

    (content_dir / 'zh' / 'hello.md').write_text("""---
date: 2024-01-01
category: 技术
tags: [入门]
---

中文内容。
""", encoding='utf-8')

    (content_dir / 'system' / 'about.md').write_text("""---
title: About
---

About this site.
""", encoding='utf-8')

    (content_dir / 'system' / 'zh' / 'about.md').write_text("""---
title: 关于
---

关于本站。
""", encoding='utf-8')

    return str(content_dir)


@pytest.fixture
def templates_dir(temp_dir):
    """Create plain templates that expose the render data for assertions."""
    templates_dir = Path(temp_dir) / 'templates'
    templates_dir.mkdir()

    (templates_dir / 'post.html').write_text("""<h1>{{ title }}</h1>
<p class="category">{{ category.url if category else '' }}</p>
<ul class="recommended">{% for item in recommended_posts %}<li>{{ item.url }}</li>{% endfor %}</ul>
<p class="keywords">{{ seo_keywords | join(',') }}</p>
<div class="content">{{ content|safe }}</div>
<p class="untitled">{{ t('content.untitled', 'Untitled') }}</p>
""", encoding='utf-8')

    (templates_dir / 'index.html').write_text("""<title>{{ title }}</title>
{% for post in posts %}<a class="post" href="{{ post.url }}">{{ post.title }}</a>
{% endfor %}<span class="page">{{ pagination.current_page }}/{{ pagination.total_pages }}</span>
{% if pagination.has_prev %}<a rel="prev" href="{{ pagination.prev_url }}"></a>{% endif %}
{% if pagination.has_next %}<a rel="next" href="{{ pagination.next_url }}"></a>{% endif %}
<nav>{% for category in navigation.categories.primary %}{{ category.name }};{% endfor %}</nav>
""", encoding='utf-8')

    (templates_dir / 'listing.html').write_text("""<title>{{ title }}</title>
<h1>{{ heading.title }}</h1>
<p class="description">{{ heading.description }}</p>
{% for post in posts %}<a class="post" href="{{ post.url }}">{{ post.title }}</a>
{% endfor %}""", encoding='utf-8')

    return str(templates_dir)


@pytest.fixture
def output_dir(temp_dir):
    """Output directory path (created by the build)."""
    return str(Path(temp_dir) / 'public')


@pytest.fixture
def site_config(content_dir, templates_dir, output_dir):
    """Configuration for a two-language build without minification or file logging."""
    config = {
        'site': {
            'title': 'Test Blog',
            'description': 'A blog for tests',
            'author': 'Tester',
            'url': 'https://example.com/',
        },
        'content': content_dir,
        'templates': templates_dir,
        'output': output_dir,
        'assets': [],
        'minify': False,
        'log_dir': None,
        'pagination': {'page_size': 10},
    }
    config.update(LANGUAGE_CONFIG)
    return config


@pytest.fixture
def registry():
    """English (default, no prefix) and Chinese (``/zh``) languages."""
    return LanguageRegistry.from_config(LANGUAGE_CONFIG)


@pytest.fixture
def router(output_dir):
    return Router(output_dir, 'https://example.com')


@pytest.fixture
def make_document(registry):
    """Factory for normalized documents without touching the file system."""
    def factory(name, tags=(), category='', date=None, language=None, title=None, html='<p>Body</p>'):
        language = language or registry.default
        return Document(
            file_path=f'/content/{name}.md',
            relative_path=f'{name}.md',
            attributes=DocumentAttributes(
                title=title if title is not None else name.title(),
                date=datetime.strptime(date, '%Y-%m-%d') if date else None,
                raw_date=date or '',
                tags=tuple(tags),
                category=category,
                lang=language.code,
            ),
            html=html,
            language=language,
        )
    return factory
