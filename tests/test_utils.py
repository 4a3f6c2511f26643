"""Tests for the string, path and date helpers."""

import os
import sys
from datetime import date, datetime, timezone

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from polypress_pkg.utils import (
    collation_key, date_sort_key, deep_merge, excerpt, format_date, iso_timestamp,
    minify_html, parse_date, plain_text, slugify, split_segments,
)


class TestSlugify:
    """Test cases for slugify."""

    @pytest.mark.parametrize('value,expected', [
        ('Hello World', 'hello-world'),
        ('  Web -- Dev!  ', 'web-dev'),
        ('Café Crème', 'cafe-creme'),
        ('技术 分享', '技术-分享'),
        ('C++ & Rust', 'c-rust'),
        ('snake_case', 'snake_case'),
    ])
    def test_slugify_values(self, value, expected):
        """Test slugify on representative display names."""
        assert slugify(value) == expected

    def test_slugify_empty_inputs(self):
        """Test slugify returns an empty string for empty input."""
        assert slugify(None) == ''
        assert slugify('') == ''
        assert slugify('!!!') == ''

    @pytest.mark.parametrize('value', ['Hello World', 'Café Crème', '技术 分享', '--a--b--', 'Ünïcödé Tëxt'])
    def test_slugify_is_idempotent(self, value):
        """Test slugify(slugify(x)) == slugify(x)."""
        once = slugify(value)
        assert slugify(once) == once

    def test_slugify_output_characters(self):
        """Test slugs contain no uppercase letters and no edge or doubled hyphens."""
        slug = slugify('  --Mixed CASE   value--  ')
        assert slug == slug.lower()
        assert not slug.startswith('-') and not slug.endswith('-')
        assert '--' not in slug


class TestSplitSegments:
    """Test cases for split_segments."""

    def test_split_nested_values(self):
        """Test nested lists, both separators and empty parts are flattened."""
        assert split_segments(['a/b', None, ['c', '\\d'], ' ', '']) == ['a', 'b', 'c', 'd']

    def test_split_plain_string(self):
        """Test a single path string."""
        assert split_segments('/tags/python/') == ['tags', 'python']

    def test_split_none(self):
        """Test None yields no segments."""
        assert split_segments(None) == []


class TestDeepMerge:
    """Test cases for deep_merge."""

    def test_merge_nested_mappings(self):
        """Test nested keys merge and scalars from the extension win."""
        base = {'nav': {'home': 'Home', 'about': 'About'}, 'title': 'Base'}
        extension = {'nav': {'home': '首页'}, 'title': 'Ext'}
        assert deep_merge(base, extension) == {'nav': {'home': '首页', 'about': 'About'}, 'title': 'Ext'}

    def test_merge_does_not_mutate_inputs(self):
        """Test neither input is modified and no values are shared."""
        base = {'nav': {'home': 'Home'}, 'list': [1, 2]}
        extension = {'nav': {'about': 'About'}}
        merged = deep_merge(base, extension)
        merged['nav']['home'] = 'Changed'
        merged['list'].append(3)
        assert base == {'nav': {'home': 'Home'}, 'list': [1, 2]}
        assert extension == {'nav': {'about': 'About'}}

    def test_lists_are_replaced(self):
        """Test lists are replaced rather than concatenated."""
        assert deep_merge({'top': ['a', 'b']}, {'top': ['c']}) == {'top': ['c']}

    def test_merge_with_none(self):
        """Test None on either side."""
        assert deep_merge(None, {'a': 1}) == {'a': 1}
        assert deep_merge({'a': 1}, None) == {'a': 1}


class TestCollation:
    """Test cases for collation_key."""

    def test_accent_and_case_insensitive_order(self):
        """Test names sort ignoring case and accents."""
        names = ['banana', 'Éclair', 'apple', 'Cherry']
        assert sorted(names, key=collation_key) == ['apple', 'banana', 'Cherry', 'Éclair']

    def test_locale_specific_order(self):
        """Test the locale decides where accented letters sort."""
        names = ['Zebra', 'Äpple', 'Apfel']
        assert sorted(names, key=lambda name: collation_key(name, 'de-DE')) == ['Apfel', 'Äpple', 'Zebra']
        assert sorted(names, key=lambda name: collation_key(name, 'sv_SE')) == ['Apfel', 'Zebra', 'Äpple']

    def test_chinese_pinyin_order(self):
        """Test zh-CN sorts by pinyin rather than by code point."""
        assert sorted(['不', '安'], key=lambda name: collation_key(name, 'zh-CN')) == ['安', '不']


class TestDates:
    """Test cases for date parsing and formatting."""

    def test_parse_date_string(self):
        """Test ISO date strings."""
        assert parse_date('2024-01-02') == datetime(2024, 1, 2)
        assert parse_date('2024-01-02 10:30:00') == datetime(2024, 1, 2, 10, 30)

    def test_parse_date_with_zulu_suffix(self):
        """Test a UTC timestamp with a Z suffix."""
        assert parse_date('2024-01-02T10:00:00Z') == datetime(2024, 1, 2, 10, tzinfo=timezone.utc)

    def test_parse_date_objects(self):
        """Test date and datetime values from YAML."""
        assert parse_date(date(2024, 1, 2)) == datetime(2024, 1, 2)
        value = datetime(2024, 1, 2, 8)
        assert parse_date(value) is value

    @pytest.mark.parametrize('value', ['not a date', '', None, 12345, []])
    def test_parse_date_unparseable(self, value):
        """Test unparseable values become None."""
        assert parse_date(value) is None

    def test_date_sort_key(self):
        """Test missing dates sort as the epoch."""
        assert date_sort_key(None) == 0.0
        assert date_sort_key(datetime(1970, 1, 2)) == 86400.0

    def test_iso_timestamp(self):
        """Test ISO timestamps are UTC with milliseconds."""
        assert iso_timestamp(datetime(2024, 1, 2)) == '2024-01-02T00:00:00.000Z'
        assert iso_timestamp(None) == ''

    def test_format_date(self):
        """Test display formatting with the default and a custom pattern."""
        assert format_date(datetime(2024, 1, 2)) == 'January 02, 2024'
        assert format_date(datetime(2024, 1, 2), '%Y/%m/%d') == '2024/01/02'
        assert format_date(None) == ''


class TestHtmlText:
    """Test cases for excerpts and HTML helpers."""

    def test_excerpt_truncates(self):
        """Test excerpts strip tags and truncate with an ellipsis."""
        assert excerpt('<p>abcdef</p>', 3) == 'abc...'
        assert excerpt('<p>abc</p>', 3) == 'abc'

    def test_plain_text_collapses_whitespace(self):
        """Test tags become spaces and whitespace collapses."""
        assert plain_text('<h2>Title</h2>\n<p>Body   text</p>') == 'Title Body text'

    def test_minify_html(self):
        """Test whitespace between tags is removed."""
        assert minify_html('<div>\n  <p>Hi</p>\n</div>\n') == '<div><p>Hi</p></div>'

    def test_minify_keeps_word_break_in_wrapped_text(self):
        """Test a line break inside text collapses to a single space."""
        assert minify_html('<p>The quick brown\nfox jumps.</p>\n<p>Next</p>') == (
            '<p>The quick brown fox jumps.</p><p>Next</p>'
        )

    def test_minify_preserves_pre_blocks(self):
        """Test pre blocks are left untouched."""
        html = '<div>\n<pre>  a\n  b</pre>\n</div>'
        assert minify_html(html) == '<div><pre>  a\n  b</pre></div>'

    def test_minify_empty(self):
        """Test empty and non-string input."""
        assert minify_html('') == ''
        assert minify_html(None) == ''
