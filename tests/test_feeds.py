"""Tests for the RSS, sitemap, robots, search and ads.txt builders."""

import json
import os
import sys
import xml.etree.ElementTree as ET

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from polypress_pkg.feeds import build_ads_txt, build_robots, build_rss, build_search_index, build_sitemap


class TestBuildRss:
    """Test cases for build_rss."""

    def test_rss_is_well_formed(self):
        """Test the feed parses and escapes text."""
        channel = {
            'title': 'Tom & Jerry',
            'description': 'd',
            'link': 'https://example.com/',
            'feed_url': 'https://example.com/rss.xml?a=1&b=2',
            'language': 'en-us',
            'last_build_date': 'Mon, 01 Jan 2024 00:00:00 GMT',
            'pub_date': 'Mon, 01 Jan 2024 00:00:00 GMT',
        }
        items = [{
            'title': '<Post>',
            'description': 'x',
            'link': 'https://example.com/a.html',
            'guid': 'https://example.com/a.html',
            'pub_date': 'Mon, 01 Jan 2024 00:00:00 GMT',
            'author': 'Anonymous',
        }]
        root = ET.fromstring(build_rss(channel, items).encode('utf-8'))
        assert root.find('channel/title').text == 'Tom & Jerry'
        assert root.find('channel/ttl').text == '1440'
        assert root.find('channel/item/title').text == '<Post>'
        atom_link = root.find('channel/{http://www.w3.org/2005/Atom}link')
        assert atom_link.get('href') == 'https://example.com/rss.xml?a=1&b=2'

    def test_rss_without_items(self):
        """Test an empty feed is still valid."""
        root = ET.fromstring(build_rss({'title': 'T'}, []).encode('utf-8'))
        assert root.findall('channel/item') == []


class TestBuildSitemap:
    """Test cases for build_sitemap."""

    def test_sitemap_entries(self):
        """Test each entry carries loc, lastmod, changefreq and priority."""
        xml = build_sitemap([
            {'loc': 'https://example.com', 'lastmod': '2024-01-01', 'changefreq': 'weekly', 'priority': 1.0},
            {'loc': 'https://example.com/a.html', 'lastmod': '2024-01-02', 'changefreq': 'weekly', 'priority': 0.6},
        ])
        ns = {'s': 'http://www.sitemaps.org/schemas/sitemap/0.9'}
        root = ET.fromstring(xml.encode('utf-8'))
        locs = [node.text for node in root.findall('s:url/s:loc', ns)]
        assert locs == ['https://example.com', 'https://example.com/a.html']
        assert [node.text for node in root.findall('s:url/s:priority', ns)] == ['1.0', '0.6']


class TestBuildRobots:
    """Test cases for build_robots."""

    def test_deduplicated_sitemaps(self):
        """Test each sitemap is listed once in first-seen order."""
        content = build_robots(
            ['https://e.com/sitemap.xml', 'https://e.com/zh/sitemap.xml', 'https://e.com/sitemap.xml', ''],
            'https://e.com/sitemap.xml',
        )
        assert content == (
            'User-agent: *\nAllow: /\n\n'
            'Sitemap: https://e.com/sitemap.xml\n'
            'Sitemap: https://e.com/zh/sitemap.xml\n'
        )

    def test_fallback_sitemap(self):
        """Test the default sitemap reference when none were generated."""
        content = build_robots([], 'https://e.com/sitemap.xml')
        assert content == 'User-agent: *\nAllow: /\n\nSitemap: https://e.com/sitemap.xml\n'


class TestOtherArtifacts:
    """Test cases for the search index and ads.txt."""

    def test_search_index(self):
        """Test the search index JSON layout."""
        data = json.loads(build_search_index([{'title': '标题'}], '2024-01-01T00:00:00.000Z'))
        assert data == {'generatedAt': '2024-01-01T00:00:00.000Z', 'posts': [{'title': '标题'}]}

    def test_ads_txt(self):
        """Test the ads.txt line."""
        assert build_ads_txt('pub-123') == (
            '# Google AdSense verification\ngoogle.com, pub-123, DIRECT, f08c47fec0942fa0\n'
        )
