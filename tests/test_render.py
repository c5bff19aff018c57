"""
HTML Rendering Tests
====================
"""

from datetime import date

from bs4 import BeautifulSoup

from natukage.albums import load_albums
from natukage.build import DEFAULT_CONFIG
from natukage.diary_content import (
    Bold,
    Code,
    Document,
    Header,
    ImageEntry,
    Images,
    List,
    PostRef,
    Raw,
    Text,
    WebLink,
)
from natukage.images import ImageAsset
from natukage.render import (
    render_albums_page,
    render_index_page,
    render_month_page,
    weekday_ja,
)

CFG = dict(DEFAULT_CONFIG)


def soup_of(page: str) -> BeautifulSoup:
    return BeautifulSoup(page, "html.parser")


class TestWeekday:

    def test_weekday_ja(self):
        assert weekday_ja(date(2023, 4, 1)) == "土"
        assert weekday_ja(date(2023, 4, 3)) == "月"


class TestMonthPage:

    def test_days_newest_first_with_anchors(self):
        entries = {
            date(2023, 4, 1): Document([Header("first")]),
            date(2023, 4, 15): Document([Header("second")]),
        }
        soup = soup_of(render_month_page(2023, 4, entries, CFG))

        assert soup.title.string == "Natuka.ge - 2023/04"
        headings = soup.find_all("h2")
        assert [h["id"] for h in headings] == ["15", "01"]
        assert headings[1].a["href"] == "#01"
        assert headings[1].a.string == "2023/04/01 (土)"

    def test_text_spans(self):
        doc = Document(
            [
                Text(
                    [
                        Raw("see "),
                        Bold("this"),
                        Code("x<y"),
                        WebLink("docs", "https://example.com/?a=1&b=2"),
                        PostRef(2022, 12, 5),
                    ]
                )
            ]
        )
        page = render_month_page(2023, 4, {date(2023, 4, 1): doc}, CFG)
        p = soup_of(page).find("dd").p

        assert p.b.string == "this"
        assert p.code.string == "x<y"
        links = p.find_all("a")
        assert links[0]["href"] == "https://example.com/?a=1&b=2"
        assert links[1]["href"] == "/2022/12.html#05"
        assert links[1].string == "2022/12/05"
        assert "(ref. " in p.get_text()
        assert "x&lt;y" in page

    def test_text_is_escaped(self):
        doc = Document([Header("<script>alert(1)</script>")])
        page = render_month_page(2023, 4, {date(2023, 4, 1): doc}, CFG)
        assert "<script>" not in page

    def test_lists_and_images(self):
        asset = ImageAsset("ramen", 600, 400)
        doc = Document(
            [
                List(
                    [
                        Text([Raw("one")]),
                        List([Text([Raw("nested")])]),
                        Images("inner", [ImageEntry(asset)]),
                    ]
                ),
                Images("Lunch", [ImageEntry(asset, "Shoyu")]),
            ]
        )
        soup = soup_of(render_month_page(2023, 4, {date(2023, 4, 1): doc}, CFG))

        ul = soup.find("dd").ul
        items = ul.find_all("li", recursive=False)
        assert items[0].get_text() == "one"
        assert items[1].ul.li.get_text() == "nested"
        assert items[2].figure is not None

        gallery = soup.find("dd").find_all("figure", class_="gallery", recursive=False)[0]
        assert gallery.figcaption.string == "Lunch"
        img = gallery.find("img")
        assert img["src"] == "/img/ramen-thumb.jpeg"
        assert img.parent["href"] == "/img/ramen.webp"
        assert gallery.find("figure").figcaption.string == "Shoyu"


class TestIndexPage:

    def test_years_and_months_newest_first(self):
        soup = soup_of(render_index_page({2022: [11, 12], 2023: [1]}, CFG, albums_href="/albums.html"))
        hrefs = [a["href"] for a in soup.find_all("a")]
        assert hrefs == [
            "/2023/01.html",
            "/2022/12.html",
            "/2022/11.html",
            "/albums.html",
        ]
        assert "2023年" in soup.get_text()

    def test_extra_head_and_footer(self):
        cfg = dict(CFG, extra_head=['<link rel="stylesheet" href="/style.css">'], extra_footer=["bye"])
        page = render_index_page({}, cfg)
        assert '<link rel="stylesheet" href="/style.css">' in page
        assert "bye" in page


class TestAlbumsPage:

    def test_sections_and_diary_links(self):
        index = load_albums(
            b'((artist "A&B" (studio "S" (2000 1 1) (2023 5 2)) (concert "C" (2001 1 1))))'
        )
        soup = soup_of(render_albums_page(index, CFG))

        assert soup.find("dt").h2.string == "A&B"
        assert [h.string for h in soup.find_all("h3")] == ["Studio albums", "Concerts"]
        link = soup.find("dd").find("a")
        assert link["href"] == "/2023/05.html#02"
        assert link.string == "2023/05/02"
