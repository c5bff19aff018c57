"""
HTML output: monthly diary pages, the index page and the albums page.

Page chrome is plain f-string templates; entry bodies are built as
BeautifulSoup trees so every piece of diary text is escaped on output.
"""
import html
from datetime import date

from bs4 import BeautifulSoup  # pip install beautifulsoup4

from .albums import KIND_TITLES, AlbumIndex
from .diary_content import (
    Bold,
    Code,
    Header,
    Images,
    List,
    PostRef,
    Raw,
    Text,
    WebLink,
)

WEEKDAYS_JA = "月火水木金土日"


def weekday_ja(d: date) -> str:
    return WEEKDAYS_JA[d.weekday()]


def month_href(year: int, month: int) -> str:
    return f"/{year:04}/{month:02}.html"


def post_href(year: int, month: int, day: int) -> str:
    return f"{month_href(year, month)}#{day:02}"


# -----------------------
# Entry bodies
# -----------------------

def _tag(soup, name, text=None, **attrs):
    tag = soup.new_tag(name, attrs=attrs)
    if text is not None:
        tag.string = text
    return tag


def render_spans(soup, parent, spans):
    for span in spans:
        if isinstance(span, Raw):
            parent.append(span.text)
        elif isinstance(span, Bold):
            parent.append(_tag(soup, "b", span.text))
        elif isinstance(span, Code):
            parent.append(_tag(soup, "code", span.text))
        elif isinstance(span, WebLink):
            parent.append(_tag(soup, "a", span.title, href=span.href))
        elif isinstance(span, PostRef):
            label = f"{span.year:04}/{span.month:02}/{span.day:02}"
            parent.append("(ref. ")
            parent.append(_tag(soup, "a", label, href=post_href(span.year, span.month, span.day)))
            parent.append(")")
        else:
            raise TypeError(f"unknown text span: {span!r}")


def render_images(soup, images: Images):
    """
    <figure class="gallery"> holding one linked thumbnail per image.
    The gallery title is the outer caption, image captions the inner ones.
    """
    gallery = _tag(soup, "figure", **{"class": "gallery"})
    gallery.append(_tag(soup, "figcaption", images.title))

    for entry in images.entries:
        asset = entry.data
        figure = _tag(soup, "figure", **{"class": "entry-figure"})
        link = _tag(soup, "a", href=asset.actual_path)
        link.append(
            _tag(
                soup,
                "img",
                src=asset.thumbnail_path,
                alt=entry.caption or "",
                loading="lazy",
            )
        )
        figure.append(link)
        if entry.caption:
            figure.append(_tag(soup, "figcaption", entry.caption))
        gallery.append(figure)

    return gallery


def render_list(soup, items: List):
    ul = soup.new_tag("ul")
    for item in items.items:
        li = soup.new_tag("li")
        if isinstance(item, Text):
            render_spans(soup, li, item.spans)
        else:
            li.append(render_item(soup, item))
        ul.append(li)
    return ul


def render_item(soup, item):
    if isinstance(item, Header):
        return _tag(soup, "h3", item.text)
    if isinstance(item, Text):
        p = soup.new_tag("p")
        render_spans(soup, p, item.spans)
        return p
    if isinstance(item, List):
        return render_list(soup, item)
    if isinstance(item, Images):
        return render_images(soup, item)
    raise TypeError(f"unknown item: {item!r}")


def render_entry(soup, day: date, document):
    """Return the <dt>/<dd> pair for one day's entry."""
    anchor = f"{day.day:02}"

    dt = soup.new_tag("dt")
    h2 = _tag(soup, "h2", id=anchor)
    h2.append(_tag(soup, "a", f"{day:%Y/%m/%d} ({weekday_ja(day)})", href=f"#{anchor}"))
    dt.append(h2)

    dd = soup.new_tag("dd")
    for item in document.items:
        dd.append(render_item(soup, item))

    return dt, dd


# -----------------------
# Pages
# -----------------------

def build_common_head_and_footer(cfg: dict):
    """Return extra_head_html, extra_footer_html strings."""
    extra_head_items = cfg.get("extra_head") or []
    extra_head_html = ""
    if extra_head_items:
        extra_head_html = "\n  " + "\n  ".join(extra_head_items)

    extra_footer_items = cfg.get("extra_footer") or []
    extra_footer_html = ""
    if extra_footer_items:
        extra_footer_html = "\n  " + "\n  ".join(extra_footer_items)

    return extra_head_html, extra_footer_html


def render_page(title: str, body_html: str, cfg: dict, *, home_link: bool = True) -> str:
    extra_head_html, extra_footer_html = build_common_head_and_footer(cfg)
    title = html.escape(title)

    home_html = ""
    if home_link:
        home_html = f'\n<a href="/">{html.escape(cfg["home_label"])}</a>'

    return f"""<!DOCTYPE html>
<html lang="{html.escape(cfg["lang"])}">
<head>
  <meta charset="utf-8">
  <title>{title}</title>
  <meta name="viewport" content="width=device-width, initial-scale=1">{extra_head_html}
</head>
<body>
<h1>{title}</h1>{home_html}
<hr>
{body_html}
<footer class="site-footer">{extra_footer_html}
</footer>
</body>
</html>
"""


def render_month_page(year: int, month: int, entries, cfg: dict) -> str:
    """
    Render one month. `entries` maps datetime.date -> resolved Document;
    days are listed newest first.
    """
    soup = BeautifulSoup("", "html.parser")
    dl = soup.new_tag("dl")
    soup.append(dl)

    for day in sorted(entries, reverse=True):
        dt, dd = render_entry(soup, day, entries[day])
        dl.append(dt)
        dl.append(dd)

    title = f"{cfg['site_title']} - {year:04}/{month:02}"
    return render_page(title, str(soup), cfg)


def render_index_page(months_by_year, cfg: dict, *, albums_href: str = "") -> str:
    """
    `months_by_year` maps year -> iterable of months that have a page.
    Years and months are listed newest first.
    """
    year_items = []
    for year in sorted(months_by_year, reverse=True):
        month_links = "".join(
            f'<li><a href="{month_href(year, month)}">{month}月</a></li>'
            for month in sorted(months_by_year[year], reverse=True)
        )
        year_items.append(f"<li>{year}年<ul>{month_links}</ul></li>")

    body = "<ul>\n" + "\n".join(year_items) + "\n</ul>"
    if albums_href:
        body += f'\n<p><a href="{albums_href}">Albums</a></p>'

    return render_page(cfg["site_title"], body, cfg, home_link=False)


def render_albums_page(index: AlbumIndex, cfg: dict) -> str:
    soup = BeautifulSoup("", "html.parser")
    dl = soup.new_tag("dl")
    soup.append(dl)

    for artist in index.artists:
        dt = soup.new_tag("dt")
        dt.append(_tag(soup, "h2", artist.name))
        dl.append(dt)

        dd = soup.new_tag("dd")
        for kind, section_title in KIND_TITLES.items():
            albums = artist.albums.get(kind)
            if not albums:
                continue
            dd.append(_tag(soup, "h3", section_title))
            ul = soup.new_tag("ul")
            for album in albums:
                li = soup.new_tag("li")
                li.append(album.name)
                if album.diary is not None:
                    d = album.diary
                    li.append(" (")
                    li.append(_tag(soup, "a", f"{d:%Y/%m/%d}", href=post_href(d.year, d.month, d.day)))
                    li.append(")")
                ul.append(li)
            dd.append(ul)
        dl.append(dd)

    title = f"{cfg['site_title']} - Albums"
    return render_page(title, str(soup), cfg)
