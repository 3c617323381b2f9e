"""Tests for card links and HTML rendering."""

from cards import (
    EMPTY_MESSAGE,
    card_key,
    map_url,
    render_card,
    render_error,
    render_listing,
    render_loading,
    tel_url,
)
from listing import Catalog, ListingView
from tests.conftest import make_record


class TestCardLinks:
    def test_map_url_prefers_road_address(self):
        record = make_record("평양냉면", road_address="경기도 고양시 중앙로 1")

        assert map_url(record) == (
            "https://map.naver.com/v5/search/"
            "%EA%B2%BD%EA%B8%B0%EB%8F%84%20%EA%B3%A0%EC%96%91%EC%8B%9C%20"
            "%EC%A4%91%EC%95%99%EB%A1%9C%201"
        )

    def test_map_url_falls_back_to_name(self):
        record = make_record("A&B")

        assert map_url(record) == "https://map.naver.com/v5/search/A%26B"

    def test_tel_url(self):
        assert tel_url(make_record("a", phone="031-1234-5678")) == "tel:031-1234-5678"
        assert tel_url(make_record("a")) is None

    def test_card_key_combines_name_address_and_index(self):
        record = make_record("가", road_address="주소")

        assert card_key(record, 3) == "가-주소-3"


class TestRenderCard:
    def test_full_card(self):
        record = make_record(
            "김밥천국", representative_food="분식", phone="031-000-0000", road_address="수원시 1"
        )

        html = render_card(record, 0)

        assert "김밥천국" in html
        assert "분식" in html
        assert 'href="tel:031-000-0000"' in html
        assert "card-addr" in html
        assert "지도 보기" in html

    def test_missing_fields_show_dash_and_hide_optional_lines(self):
        html = render_card(make_record(None), 0)

        assert '<h3 class="card-name">-</h3>' in html
        assert '<p class="card-food">-</p>' in html
        assert "tel:" not in html
        assert "card-addr" not in html

    def test_escapes_markup(self):
        html = render_card(make_record("<script>"), 0)

        assert "<script>" not in html
        assert "&lt;script&gt;" in html


class TestRenderPages:
    def test_loading_and_error_pages(self):
        assert "데이터를 불러오는 중" in render_loading()
        assert "인증키 오류" in render_error("인증키 오류")

    def test_listing_with_load_more(self):
        catalog = Catalog([make_record(f"식당{i:02d}") for i in range(13)])
        view = ListingView(catalog)

        html = render_listing(view)

        assert html.count('class="restaurant-card"') == 12
        assert "13곳" in html
        assert "더보기" in html
        assert "count=24" in html

    def test_listing_without_more(self):
        view = ListingView(Catalog([make_record("가")]))

        assert "더보기" not in render_listing(view)

    def test_search_message_and_empty_state(self):
        view = ListingView(Catalog([make_record("가")]))
        view.type_search("없는집")
        view.submit_search()

        html = render_listing(view)

        assert "&quot;없는집&quot; 검색 결과 0곳" in html
        assert EMPTY_MESSAGE in html
        assert "restaurant-card" not in html
