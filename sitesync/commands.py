import click
from flask import current_app
from flask.cli import with_appcontext
from sitesync.extensions import db
from sitesync.exceptions import TransientFetchError
from sitesync.models.content import ContentRecord
from sitesync.models.blog import Article, Category
from sitesync.models.collection import ORDERED_COLLECTIONS
from sitesync.services.content_store import ContentStore
from sitesync.services.atomic_replace import AtomicReplace
from sitesync.services.article_service import ArticleService
from sitesync.cache.article_cache import ArticleCache

HOMEPAGE_HERO = {
    'title': 'Unlock Your Ad Revenue Potential with Intelligent Ad Operations',
    'subtitle': 'We help publishers and app developers maximize revenue and keep traffic quality healthy.',
    'cta_primary_text': 'Get a Free Consultation',
    'cta_primary_link': '/consultation',
    'cta_secondary_text': 'Explore Our Solutions',
    'cta_secondary_link': '/solutions',
}

DEMO_COLLECTIONS = {
    'expertise': [
        {'title': 'Programmatic Advertising', 'description': 'Programmatic strategies and real-time bidding optimization.'},
        {'title': 'Header Bidding', 'description': 'Implementation and optimization of header bidding solutions.'},
        {'title': 'Ad Quality & Fraud Prevention', 'description': 'Ad quality control and fraud detection.'},
    ],
    'testimonials': [
        {'text': 'Revenue up 40% in one quarter.', 'client_name': 'Dana Reyes', 'company_name': 'Northwind Media'},
        {'text': 'Fill rates finally make sense.', 'client_name': 'Sam Patel', 'company_name': 'Brightline Apps'},
    ],
    'widgets': [
        {'type': 'html', 'title': 'Newsletter', 'content': '<p>Subscribe for monthly AdOps notes.</p>'},
    ],
    'packages': [
        {'name': 'Starter', 'price': '$499/mo', 'features': ['Monthly audit', 'Email support']},
        {'name': 'Growth', 'price': '$1,499/mo', 'features': ['Weekly optimization', 'Dedicated manager'], 'highlighted': True},
    ],
}


@click.command('status')
@with_appcontext
def status():
    """
    查看当前数据库中的内容统计。
    """
    click.echo(click.style('📊 SiteSync 内容状态:', fg='cyan', bold=True))

    click.echo(f" - 内容区块 (Sections): \t{len(ContentStore.list_sections())}")
    click.echo(f" - 内容记录 (Records): \t{ContentRecord.query.count()}")
    for name in sorted(ORDERED_COLLECTIONS):
        click.echo(f" - 集合 {name}: \t{AtomicReplace.count(name)}")
    click.echo(f" - 文章 (Articles): \t{Article.query.count()} "
               f"(已发布 {Article.query.filter_by(is_published=True).count()})")


@click.command('seed')
@click.option('--drop', is_flag=True, help='重建所有表（清除现有数据）')
@with_appcontext
def seed(drop):
    """
    初始化演示内容：首页 Hero、有序集合、分类与文章。
    """
    if drop:
        db.drop_all()
    db.create_all()

    click.echo('正在写入首页内容...')
    results = ContentStore.bulk_update(
        [{'section': 'hero', 'key': key, 'value': value} for key, value in HOMEPAGE_HERO.items()],
        prefix='homepage_'
    )
    click.echo(f"  ✓ {sum(1 for r in results if r['success'])} 个字段")

    click.echo('正在替换有序集合...')
    for name, items in DEMO_COLLECTIONS.items():
        count = AtomicReplace.replace(name, items)
        click.echo(f'  ✓ {name}: {count} 项')

    click.echo('正在发布文章...')
    category = Category.query.filter_by(slug='adops').first() or \
        ArticleService.create_category('AdOps', 'adops', 'Ad operations playbooks')
    demo_articles = [
        {'slug': 'header-bidding-101', 'title': 'Header Bidding 101', 'isPublished': True,
         'content': '<p>How header bidding works and when to use it.</p>', 'tags': ['header-bidding']},
        {'slug': 'fill-rate-checklist', 'title': 'The Fill Rate Checklist', 'isPublished': True,
         'content': '<p>Ten checks before blaming demand.</p>', 'tags': ['fill-rate']},
        {'slug': 'ads-txt-deep-dive', 'title': 'ads.txt Deep Dive', 'isPublished': False,
         'content': '<p>Draft.</p>', 'tags': []},
    ]
    for data in demo_articles:
        if Article.query.filter_by(slug=data['slug']).first():
            continue
        ArticleService.create(dict(data, categoryId=category.id, author='SiteSync Team'))
    click.echo(click.style('✔ 演示内容写入完成！', fg='green', bold=True))


@click.command('warm-cache')
@with_appcontext
def warm_cache():
    """
    按当前配置初始化一次文章缓存并打印统计，用于检查公共 API 与备用地址是否可达。
    """
    with ArticleCache.from_config(current_app.config) as article_cache:
        try:
            count = article_cache.initialize()
        except TransientFetchError as e:
            click.echo(click.style(f'✘ 文章缓存初始化失败: {e.message}', fg='red'))
            for attempt in (e.payload or {}).get('attempts', []):
                click.echo(f'   - {attempt}')
            raise SystemExit(1)
        click.echo(click.style(f'✔ 已缓存 {count} 篇文章', fg='green'))
        for slug in article_cache.get_stats()['articles']:
            click.echo(f'   - {slug}')
