"""
Text builders for the machine-readable artifacts: RSS, sitemap, robots.txt,
search index and ads.txt. They only format strings; the orchestrator decides
what goes in and where the result is written.
"""

import json
from typing import Any, Dict, Iterable, List
from xml.sax.saxutils import escape

ADS_TXT_CERTIFICATION_ID = 'f08c47fec0942fa0'


def build_rss(channel: Dict[str, Any], items: Iterable[Dict[str, Any]]) -> str:
    """RSS 2.0 document with an ``atom:link`` self reference."""
    rss_content = f'''<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:atom="http://www.w3.org/2005/Atom">
  <channel>
    <title>{escape(channel.get('title', ''))}</title>
    <description>{escape(channel.get('description', ''))}</description>
    <link>{escape(channel.get('link', ''))}</link>
    <atom:link href="{escape(channel.get('feed_url', ''), {'"': '&quot;'})}" rel="self" type="application/rss+xml" />
    <language>{escape(channel.get('language', ''))}</language>
    <lastBuildDate>{channel.get('last_build_date', '')}</lastBuildDate>
    <pubDate>{channel.get('pub_date', '')}</pubDate>
    <ttl>1440</ttl>'''

    for item in items:
        rss_content += f'''
    <item>
      <title>{escape(item.get('title', ''))}</title>
      <description>{escape(item.get('description', ''))}</description>
      <link>{escape(item.get('link', ''))}</link>
      <guid isPermaLink="true">{escape(item.get('guid', ''))}</guid>
      <pubDate>{item.get('pub_date', '')}</pubDate>
      <author>{escape(item.get('author', ''))}</author>
    </item>'''

    rss_content += '''
  </channel>
</rss>
'''
    return rss_content


def build_sitemap(entries: Iterable[Dict[str, Any]]) -> str:
    """Sitemap XML with ``loc``, ``lastmod``, ``changefreq`` and ``priority`` per URL."""
    lines = []
    for entry in entries:
        lines.append(
            '  <url>\n'
            f"    <loc>{escape(entry['loc'])}</loc>\n"
            f"    <lastmod>{entry['lastmod']}</lastmod>\n"
            f"    <changefreq>{entry['changefreq']}</changefreq>\n"
            f"    <priority>{entry['priority']}</priority>\n"
            '  </url>'
        )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">\n'
        + '\n'.join(lines)
        + '\n</urlset>'
    )


def build_robots(sitemap_urls: Iterable[str], fallback_sitemap: str) -> str:
    """Allow-all robots.txt listing each sitemap once, in first-seen order."""
    lines = ['User-agent: *', 'Allow: /', '']
    unique: List[str] = []
    for url in sitemap_urls:
        if url and url not in unique:
            unique.append(url)
    if not unique:
        unique.append(fallback_sitemap)
    lines.extend(f"Sitemap: {url}" for url in unique)
    return '\n'.join(lines) + '\n'


def build_search_index(items: List[Dict[str, Any]], generated_at: str) -> str:
    return json.dumps({'generatedAt': generated_at, 'posts': items}, indent=2, ensure_ascii=False)


def build_ads_txt(publisher_id: str) -> str:
    return f"# Google AdSense verification\ngoogle.com, {publisher_id}, DIRECT, {ADS_TXT_CERTIFICATION_ID}\n"
