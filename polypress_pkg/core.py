import os
import logging
import posixpath
import time
from datetime import datetime, timezone
from email.utils import formatdate
from typing import Any, Dict, List, Optional

from .aggregate import build_navigation, collect_categories, collect_tags, prepare_backgrounds
from .assets import copy_assets, minify_assets
from .content import Document, MarkdownParser, normalize_document
from .errors import BuildError
from .feeds import build_ads_txt, build_robots, build_rss, build_search_index, build_sitemap
from .languages import Language, LanguageRegistry, translate
from .pagination import build_pagination, paginate, total_pages
from .recommend import newest_first, recommend
from .render import Renderer
from .routing import Router, resolve_language, strip_language_segment
from .settings import PolypressSettings
from .utils import (
    DEFAULT_DISPLAY_FORMAT, date_sort_key, deep_merge, excerpt, format_date, iso_timestamp,
    minify_html, plain_text, slugify,
)

RSS_ITEM_LIMIT = 20
EXCERPT_LENGTH = 200
META_DESCRIPTION_LENGTH = 160
SEARCH_EXCERPT_LENGTH = 220


class InfoFilter(logging.Filter):
    """Filter to allow only selected INFO messages to be shown in the console."""
    def filter(self, record):
        allowed_messages = [
            "Site build completed in",
            "Total posts generated:",
            "Total pages generated:",
            "Total listing pages generated:",
            "Building index pages",
            "Generating RSS feed",
            "Generating search index",
            "Generating XML sitemap",
            "Generating robots.txt",
            "Generating ads.txt",
        ]
        return any(msg in record.getMessage() for msg in allowed_messages)


class Polypress:
    """
    Generation orchestrator.

    Reads every Markdown file under the content root, groups the documents by
    language and writes each language's pages, listings, feed, search index
    and sitemap, followed by the global robots.txt, ads.txt and assets.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, parser=None, renderer=None):
        self.config = deep_merge(PolypressSettings.DEFAULT_SETTINGS, config or {})

        self.content_dir = self.config['content']
        self.system_dir = os.path.join(self.content_dir, self.config.get('system_dir') or 'system')
        self.output_dir = self.config['output']
        self.minify = bool(self.config.get('minify'))
        self.log_dir = self.config.get('log_dir')
        self.page_size = max(1, int(self.config['pagination'].get('page_size') or 10))
        self.build_time = 0.0

        self.posts_generated = 0
        self.pages_generated = 0
        self.listings_generated = 0

        self.setup_logging()

        self.registry = LanguageRegistry.from_config(self.config)
        self.router = Router(self.output_dir, self.config['site'].get('url'))
        self.backgrounds = prepare_backgrounds(self.config['navigation']['categories'].get('backgrounds'))

        # Parsing and rendering collaborators
        self.parser = parser or MarkdownParser().parse
        self.renderer = renderer or Renderer(self.config.get('templates'))

    def setup_logging(self):
        """Set up logging configuration."""
        self.logger = logging.getLogger('Polypress')
        self.logger.setLevel(logging.DEBUG if self.log_dir else logging.INFO)

        if not self.logger.handlers:
            # Console handler with filter
            console_handler = logging.StreamHandler()
            console_handler.setLevel(logging.INFO)
            console_handler.addFilter(InfoFilter())
            console_formatter = logging.Formatter('%(message)s')
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

            # File handler for all logs
            if self.log_dir:
                os.makedirs(self.log_dir, exist_ok=True)
                log_filename = datetime.now().strftime('polypress_%Y-%m-%d_%H-%M-%S.log')
                log_filepath = os.path.join(self.log_dir, log_filename)

                file_handler = logging.FileHandler(log_filepath, encoding='utf-8')
                file_handler.setLevel(logging.DEBUG)
                file_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
                file_handler.setFormatter(file_formatter)
                self.logger.addHandler(file_handler)

    @property
    def site(self) -> Dict[str, Any]:
        return self.config['site']

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def is_system_page(self, file_path: str) -> bool:
        if not os.path.isdir(self.system_dir):
            return False
        relative = os.path.relpath(os.path.abspath(file_path), os.path.abspath(self.system_dir))
        return not relative.startswith('..')

    def load_documents(self) -> Dict[str, Dict[str, List[Document]]]:
        """
        Parse and normalize every source file.

        Returns ``{language_code: {'posts': [...], 'system_pages': [...]}}``
        with an entry for every registered language.
        """
        content = {language.code: {'posts': [], 'system_pages': []} for language in self.registry}

        for file_path in MarkdownParser.get_markdown_files(self.content_dir):
            relative_to_content = os.path.relpath(file_path, self.content_dir)
            is_system = self.is_system_page(file_path)
            parsed = self.parser(file_path)

            language = resolve_language(
                self.registry, relative_to_content, parsed.attributes.get('lang'), is_system_page=is_system
            )
            relative_path = (
                strip_language_segment(relative_to_content, language, is_system_page=is_system)
                or os.path.basename(file_path)
            )
            document = normalize_document(file_path, relative_path, parsed, language, is_system)
            bucket = content[language.code]
            bucket['system_pages' if is_system else 'posts'].append(document)
            self.logger.debug(f"Loaded {file_path} as {language.code}:{relative_path}")

        return content

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def write_file(self, output_path: str, content: str):
        try:
            os.makedirs(os.path.dirname(output_path), exist_ok=True)
            with open(output_path, 'w', encoding='utf-8') as f:
                f.write(content)
        except (IOError, OSError) as e:
            raise BuildError(f"Failed to write output file: {e}", path=output_path, stage='write') from e
        self.logger.debug(f"Generated: {output_path}")

    def write_html(self, output_path: str, html: str):
        self.write_file(output_path, minify_html(html) if self.minify else html)

    def render(self, template_name: str, data: Dict[str, Any]) -> str:
        return self.renderer(template_name, data)

    # ------------------------------------------------------------------
    # Template data
    # ------------------------------------------------------------------

    def untitled(self, language: Language) -> str:
        return translate(language, 'content.untitled', 'Untitled')

    def format_dates(self, document: Document, language: Language):
        pattern = translate(language, 'formats.date', DEFAULT_DISPLAY_FORMAT)
        value = document.attributes.date
        return format_date(value, pattern), iso_timestamp(value)

    def tag_links(self, tags, language: Language) -> List[Dict[str, str]]:
        return [
            {'name': name, 'slug': slugify(name), 'url': self.router.tag_url(name, language)}
            for name in tags
        ]

    def category_for(self, name: str, language: Language) -> Optional[Dict[str, str]]:
        if not name:
            return None
        return {'name': name, 'slug': slugify(name), 'url': self.router.category_url(name, language)}

    def listing_item(self, document: Document, language: Language, include_excerpt: bool = True) -> Dict[str, Any]:
        date_formatted, date_iso = self.format_dates(document, language)
        attributes = document.attributes
        return {
            'title': attributes.title or self.untitled(language),
            'url': self.router.document_url(document.relative_path, language),
            'cover_image': attributes.cover_image,
            'excerpt': excerpt(document.html, EXCERPT_LENGTH) if include_excerpt else '',
            'date_formatted': date_formatted,
            'date_iso': date_iso,
            'tags': self.tag_links(attributes.tags, language),
            'category': self.category_for(attributes.category, language),
        }

    def social_links(self) -> List[Dict[str, str]]:
        links = []
        for item in self.config['footer'].get('social') or []:
            if not isinstance(item, dict):
                continue
            url = str(item.get('url') or '').strip()
            if not url:
                continue
            label = str(item.get('label') or '').strip()
            bare = url.split('://', 1)[-1]
            links.append({
                'label': label,
                'url': url,
                'icon_key': str(item.get('icon') or '').strip().lower(),
                'fallback': (label[:1] or bare[:1]).upper(),
            })
        return links

    def navigation_context(self, categories, language: Language, active_page: str = '',
                           active_category_slug: str = '') -> Dict[str, Any]:
        navigation = build_navigation(categories, language, active_page, active_category_slug)
        switcher = self.router.language_switcher(self.registry, language)
        show_switcher = self.config['i18n'].get('show_language_switcher') is not False and len(switcher) > 1
        return {
            'active_page': navigation.active_page,
            'active_category_slug': navigation.active_category_slug,
            'categories': {
                'primary': navigation.primary,
                'more': navigation.more,
                'more_label': navigation.more_label,
                'has_categories': navigation.has_categories,
                'default_category_name': navigation.default_category_name,
            },
            'home_url': self.router.home_url(language),
            'about_url': self.router.build_url(language, 'about.html'),
            'filter_label': translate(language, 'nav.filter', 'Filter'),
            'toggle_menu_label': translate(language, 'nav.toggleMenu', 'Toggle menu'),
            'languages': switcher if show_switcher else switcher[:1],
            'has_language_switcher': show_switcher,
        }

    def base_template_data(self, language: Language, navigation: Dict[str, Any], available_tags) -> Dict[str, Any]:
        footer = self.config['footer']
        icp = footer.get('icp') or {}
        analytics = self.config['analytics']
        tags = list(available_tags or [])
        return {
            'site': self.site,
            'navigation': navigation,
            'language': {'code': language.code, 'locale': language.locale, 'label': language.label},
            'translations': language.translations,
            'available_tags': tags,
            'has_tag_filters': bool(tags),
            'assets': {
                'rss': self.router.build_url(language, 'rss.xml'),
                'sitemap': self.router.build_url(language, 'sitemap.xml'),
                'search': self.router.build_url(language, 'search.json'),
            },
            'footer': {
                'icp': {'text': str(icp.get('text') or '').strip(), 'link': str(icp.get('link') or '').strip()},
                'note': str(footer.get('note') or '').strip(),
                'social': self.social_links(),
            },
            'analytics': {
                'head': analytics.get('head') if isinstance(analytics.get('head'), str) else '',
                'body_end': analytics.get('body_end') if isinstance(analytics.get('body_end'), str) else '',
            },
        }

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    def build_post(self, post: Document, posts: List[Document], categories, available_tags, language: Language):
        attributes = post.attributes
        category = self.category_for(attributes.category, language)
        navigation = self.navigation_context(
            categories, language, active_category_slug=category['slug'] if category else ''
        )
        recommended = [
            self.listing_item(doc, language, include_excerpt=False) for doc in recommend(post, posts)
        ]
        date_formatted, date_iso = self.format_dates(post, language)

        data = self.base_template_data(language, navigation, available_tags)
        data.update({
            'title': attributes.title or self.untitled(language),
            'date': attributes.raw_date,
            'date_formatted': date_formatted,
            'date_iso': date_iso,
            'tags': self.tag_links(attributes.tags, language),
            'cover_image': attributes.cover_image,
            'content': post.html,
            'category': category,
            'seo_keywords': list(attributes.seo_keywords),
            'recommended_posts': recommended,
            'has_recommendations': bool(recommended),
            'meta_description': excerpt(post.html, META_DESCRIPTION_LENGTH),
        })
        self.write_html(self.router.document_output_path(post.relative_path, language), self.render('post', data))
        self.posts_generated += 1

    def build_system_page(self, page: Document, categories, available_tags, language: Language):
        attributes = page.attributes
        active_page = posixpath.splitext(posixpath.basename(page.relative_path))[0]
        navigation = self.navigation_context(categories, language, active_page=active_page)
        date_formatted, date_iso = self.format_dates(page, language)

        data = self.base_template_data(language, navigation, available_tags)
        data.update({
            'title': attributes.title or self.untitled(language),
            'date': attributes.raw_date,
            'date_formatted': date_formatted,
            'date_iso': date_iso,
            'tags': self.tag_links(attributes.tags, language),
            'cover_image': attributes.cover_image,
            'content': page.html,
            'category': None,
            'seo_keywords': list(attributes.seo_keywords),
            'recommended_posts': [],
            'has_recommendations': False,
            'meta_description': excerpt(page.html, META_DESCRIPTION_LENGTH),
        })
        self.write_html(self.router.document_output_path(page.relative_path, language), self.render('post', data))
        self.pages_generated += 1

    def build_index_pages(self, posts: List[Document], categories, available_tags, language: Language) -> int:
        """
        Build paginated index pages.
        - index.html for page 1
        - page/<n>/index.html for pages 2..n
        """
        self.logger.info(f"Building index pages for {language.code}")
        sorted_posts = newest_first(posts)
        pages = total_pages(len(sorted_posts), self.page_size)

        for page_number in range(1, pages + 1):
            page = paginate(sorted_posts, page_number, self.page_size)
            navigation = self.navigation_context(
                categories, language, active_page='home' if page_number == 1 else ''
            )
            data = self.base_template_data(language, navigation, available_tags)
            data.update({
                'title': self.site.get('title', ''),
                'posts': [self.listing_item(doc, language) for doc in page.items],
                'pagination': build_pagination(self.router, language, page_number, pages),
                'has_posts': bool(page.items),
            })
            self.write_html(self.router.page_output_path(language, page_number), self.render('index', data))
        return pages

    def build_listing_page(self, title: str, heading: Dict[str, Any], posts: List[Document], output_path: str,
                           navigation: Dict[str, Any], available_tags, language: Language):
        data = self.base_template_data(language, navigation, available_tags)
        items = [self.listing_item(doc, language) for doc in newest_first(posts)]
        data.update({
            'title': title,
            'heading': heading,
            'posts': items,
            'has_posts': bool(items),
        })
        self.write_html(output_path, self.render('listing', data))
        self.listings_generated += 1

    def build_tag_pages(self, tags, posts: List[Document], categories, language: Language):
        suffix = translate(language, 'tags.pageTitleSuffix', 'Tags')
        for tag in tags:
            tagged = [post for post in posts if tag.name in post.attributes.tags]
            if not tagged:
                continue
            heading = {
                'title': f"#{tag.name}",
                'description': translate(language, 'tags.description', f"{tag.count} posts", {'count': tag.count}),
                'type': 'tag',
            }
            self.build_listing_page(
                title=f"{tag.name} · {suffix} · {self.site.get('title', '')}",
                heading=heading,
                posts=tagged,
                output_path=self.router.build_output_path(language, 'tags', tag.slug, 'index.html'),
                navigation=self.navigation_context(categories, language),
                available_tags=tags,
                language=language,
            )

    def build_category_pages(self, categories, posts: List[Document], available_tags, language: Language):
        suffix = translate(language, 'categories.pageTitleSuffix', 'Categories')
        for category in categories:
            members = [post for post in posts if slugify(post.attributes.category) == category.slug]
            if not members:
                continue
            heading = {
                'title': category.name,
                'description': translate(
                    language, 'categories.description', f"{category.count} posts", {'count': category.count}
                ),
                'type': 'category',
                'background_image': category.background_image,
            }
            self.build_listing_page(
                title=f"{category.name} · {suffix} · {self.site.get('title', '')}",
                heading=heading,
                posts=members,
                output_path=self.router.build_output_path(language, 'categories', category.slug, 'index.html'),
                navigation=self.navigation_context(categories, language, active_category_slug=category.slug),
                available_tags=available_tags,
                language=language,
            )

    # ------------------------------------------------------------------
    # Machine-readable artifacts
    # ------------------------------------------------------------------

    def generate_rss_feed(self, posts: List[Document], language: Language):
        """Generate the language's RSS feed with the newest posts."""
        now = formatdate(usegmt=True)
        description = self.site.get('description') or translate(
            language, 'messages.rssDescription', 'Static blog powered by Markdown'
        )
        channel = {
            'title': self.site.get('title', ''),
            'description': description,
            'link': self.router.site_url_for(language, [], trailing_slash=True),
            'feed_url': self.router.site_url_for(language, 'rss.xml'),
            'language': (language.locale or 'en-US').lower(),
            'last_build_date': now,
            'pub_date': now,
        }
        items = []
        for post in newest_first(posts)[:RSS_ITEM_LIMIT]:
            link = self.router.absolute_url(self.router.document_url(post.relative_path, language))
            date = post.attributes.date
            items.append({
                'title': post.attributes.title or self.untitled(language),
                'description': excerpt(post.html, EXCERPT_LENGTH),
                'link': link,
                'guid': link,
                'pub_date': formatdate(date_sort_key(date), usegmt=True) if date else now,
                'author': self.site.get('author') or 'Anonymous',
            })

        self.write_file(self.router.build_output_path(language, 'rss.xml'), build_rss(channel, items))
        self.logger.info(f"Generating RSS feed for {language.code}")

    def generate_search_index(self, posts: List[Document], language: Language):
        items = []
        for post in posts:
            date_formatted, date_iso = self.format_dates(post, language)
            attributes = post.attributes
            items.append({
                'title': attributes.title or self.untitled(language),
                'url': self.router.document_url(post.relative_path, language),
                'excerpt': excerpt(post.html, SEARCH_EXCERPT_LENGTH),
                'tags': list(attributes.tags),
                'tagLinks': self.tag_links(attributes.tags, language),
                'date': attributes.raw_date,
                'dateFormatted': date_formatted,
                'dateISO': date_iso,
                'coverImage': attributes.cover_image,
                'category': self.category_for(attributes.category, language),
                'content': plain_text(post.html),
            })
        generated_at = iso_timestamp(datetime.now(timezone.utc))
        self.write_file(self.router.build_output_path(language, 'search.json'), build_search_index(items, generated_at))
        self.logger.info(f"Generating search index for {language.code}")

    def generate_xml_sitemap(self, posts: List[Document], categories, tags, pages: int,
                             system_pages: List[Document], language: Language) -> str:
        """Write the language's sitemap and return its public URL."""
        seo = self.config['seo']
        changefreq = seo.get('change_frequency') or 'weekly'
        home_priority = seo.get('home_priority') or 1.0
        default_priority = seo.get('default_priority') or 0.6
        today = datetime.now(timezone.utc).date().isoformat()

        def entry(loc, lastmod=today, priority=default_priority):
            return {'loc': loc, 'lastmod': lastmod, 'changefreq': changefreq, 'priority': priority}

        entries = [entry(self.router.absolute_url(self.router.home_url(language)), priority=home_priority)]
        for page_number in range(2, pages + 1):
            entries.append(entry(self.router.absolute_url(self.router.page_url(language, page_number))))
        for post in posts:
            lastmod = iso_timestamp(post.attributes.date)[:10] or today
            entries.append(entry(self.router.absolute_url(self.router.document_url(post.relative_path, language)),
                                 lastmod=lastmod))
        for category in categories:
            entries.append(entry(self.router.absolute_url(category.url)))
        for tag in tags:
            entries.append(entry(self.router.absolute_url(tag.url)))
        for page in system_pages:
            entries.append(entry(self.router.absolute_url(self.router.document_url(page.relative_path, language))))

        self.write_file(self.router.build_output_path(language, 'sitemap.xml'), build_sitemap(entries))
        self.logger.info(f"Generating XML sitemap for {language.code}")
        return self.router.site_url_for(language, 'sitemap.xml')

    def generate_robots_txt(self, sitemap_urls: List[str]):
        content = build_robots(sitemap_urls, f"{self.router.site_url}/sitemap.xml")
        self.write_file(os.path.join(self.output_dir, 'robots.txt'), content)
        self.logger.info("Generating robots.txt")

    def generate_ads_txt(self):
        """Write ads.txt, or remove a stale one when advertising is off."""
        advertising = self.config['advertising']
        ads_path = os.path.join(self.output_dir, 'ads.txt')
        publisher_id = advertising.get('publisher_id')
        publisher_id = publisher_id.strip() if isinstance(publisher_id, str) else ''

        if advertising.get('disabled') or not publisher_id:
            reason = 'Advertising disabled' if advertising.get('disabled') else 'No publisher ID configured'
            if os.path.exists(ads_path):
                os.remove(ads_path)
                self.logger.debug(f"{reason}; existing ads.txt removed")
            else:
                self.logger.debug(f"{reason}; ads.txt not generated")
            return

        self.write_file(ads_path, build_ads_txt(publisher_id))
        self.logger.info("Generating ads.txt")

    def copy_assets_to_output(self):
        copied = copy_assets(self.config.get('assets') or [], self.output_dir)
        if self.minify:
            for directory in copied:
                minify_assets(directory)

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    def build_language(self, language: Language, posts: List[Document], system_pages: List[Document]) -> str:
        """Build everything for one language and return its sitemap URL."""
        categories = collect_categories(posts, language, self.router, self.backgrounds)
        available_tags = collect_tags(posts, language, self.router)

        for post in posts:
            self.build_post(post, posts, categories, available_tags, language)

        for page in system_pages:
            self.build_system_page(page, categories, available_tags, language)

        pages = self.build_index_pages(posts, categories, available_tags, language)
        self.build_tag_pages(available_tags, posts, categories, language)
        self.build_category_pages(categories, posts, available_tags, language)
        self.generate_rss_feed(posts, language)
        self.generate_search_index(posts, language)
        return self.generate_xml_sitemap(posts, categories, available_tags, pages, system_pages, language)

    def build(self):
        """Main build process."""
        start_time = time.time()
        self.logger.debug("Starting site build...")
        os.makedirs(self.output_dir, exist_ok=True)

        content = self.load_documents()

        sitemap_urls = []
        for language in self.registry:
            bucket = content[language.code]
            sitemap_url = self.build_language(language, bucket['posts'], bucket['system_pages'])
            if sitemap_url:
                sitemap_urls.append(sitemap_url)

        self.generate_robots_txt(sitemap_urls)
        self.generate_ads_txt()
        self.copy_assets_to_output()

        self.build_time = time.time() - start_time
        return self.stats()

    def stats(self) -> Dict[str, int]:
        return {
            'posts': self.posts_generated,
            'pages': self.pages_generated,
            'listings': self.listings_generated,
        }
