import urllib.parse
from html import escape
from typing import Optional

from fetcher import RestaurantRecord
from listing import LOAD_MORE_COUNT, ListingView

MAP_SEARCH_URL = "https://map.naver.com/v5/search/"

BADGE = "경기으뜸맛집"
TITLE = "경기도 맛집 현황"
SUBTITLE = "지역별로 필터링하여 보세요"
LOADING_MESSAGE = "데이터를 불러오는 중…"
EMPTY_MESSAGE = "검색 결과가 없습니다."
FOOTER_NOTE = "※ 경기으뜸맛집 사업은 2020년 이후 폐지되었으며, 데이터는 2023년 기준입니다."


# ──────────────────────────────────────────────────────────────────────────────
# 카드 링크/키
# ──────────────────────────────────────────────────────────────────────────────
def map_url(record: RestaurantRecord) -> str:
    return MAP_SEARCH_URL + urllib.parse.quote(record.road_address or record.name or "", safe="")


def tel_url(record: RestaurantRecord) -> Optional[str]:
    return f"tel:{record.phone}" if record.phone else None


def card_key(record: RestaurantRecord, index: int) -> str:
    # 고유키가 없어서 이름/주소/순번을 조합
    return f"{record.name}-{record.road_address}-{index}"


def listing_url(region: str, query: str, count: Optional[int] = None) -> str:
    params = {"region": region}
    if query:
        params["q"] = query
    if count:
        params["count"] = count
    return "/?" + urllib.parse.urlencode(params)


# ──────────────────────────────────────────────────────────────────────────────
# HTML
# ──────────────────────────────────────────────────────────────────────────────
def render_card(record: RestaurantRecord, index: int) -> str:
    parts = [
        f'<article class="restaurant-card" data-key="{escape(card_key(record, index))}">',
        f'<h3 class="card-name">{escape(record.name or "-")}</h3>',
        f'<p class="card-food">{escape(record.representative_food or "-")}</p>',
    ]
    tel = tel_url(record)
    if tel:
        parts.append(
            f'<p class="card-detail"><a href="{escape(tel)}">{escape(record.phone)}</a></p>'
        )
    if record.road_address:
        parts.append(f'<p class="card-detail card-addr">{escape(record.road_address)}</p>')
    parts.append(
        f'<a href="{escape(map_url(record))}" target="_blank" '
        f'rel="noopener noreferrer" class="card-link">지도 보기</a>'
    )
    parts.append("</article>")
    return "\n".join(parts)


def _header(controls: str = "", subtitle: bool = True) -> str:
    sub = f'<p class="subtitle">{SUBTITLE}</p>' if subtitle else ""
    return (
        '<header class="header">'
        f'<span class="badge">{BADGE}</span><h1>{TITLE}</h1>{sub}{controls}'
        "</header>"
    )


def _document(body: str) -> str:
    return (
        '<!doctype html><html lang="ko"><head><meta charset="utf-8">'
        f"<title>{TITLE}</title></head>"
        f'<body><div class="app">{body}</div></body></html>'
    )


def render_loading() -> str:
    return _document(_header() + f'<div class="loading">{LOADING_MESSAGE}</div>')


def render_error(message: str) -> str:
    return _document(_header(subtitle=False) + f'<div class="error">{escape(message)}</div>')


def render_listing(view: ListingView) -> str:
    filtered = view.filtered
    region = view.selected_region
    query = view.search_query

    options = "".join(
        f'<option value="{escape(r)}"{" selected" if r == region else ""}>{escape(r)}</option>'
        for r in view.regions
    )
    # 지역 변경 시 검색어는 유지하고 표시 개수는 초기화
    hidden_q = f'<input type="hidden" name="q" value="{escape(query)}">' if query else ""
    controls = (
        '<form class="filter-wrap" method="get" action="/">'
        '<label for="region">지역 선택</label>'
        f'<select id="region" name="region" onchange="this.form.submit()">{options}</select>'
        f"{hidden_q}"
        f'<span class="filter-count">{len(filtered)}곳</span>'
        "</form>"
        '<form class="search-wrap" method="get" action="/">'
        f'<input type="hidden" name="region" value="{escape(region)}">'
        '<input type="text" name="q" placeholder="식당 이름 또는 주소로 검색" '
        f'value="{escape(view.search_text)}" aria-label="검색어">'
        '<button type="submit" class="search-btn">검색하기</button>'
        "</form>"
    )
    if query:
        controls += (
            f'<p class="search-result-msg">&quot;{escape(query)}&quot; '
            f"검색 결과 {len(filtered)}곳</p>"
        )

    if not filtered:
        main = f'<p class="search-empty">{EMPTY_MESSAGE}</p>'
    else:
        cards = "\n".join(render_card(r, i) for i, r in enumerate(view.visible))
        main = f'<div class="grid">{cards}</div>'
        if view.has_more:
            more = listing_url(region, query, view.display_count + LOAD_MORE_COUNT)
            main += (
                '<div class="load-more-wrap">'
                f'<a class="load-more" href="{escape(more)}">더보기</a>'
                "</div>"
            )

    return _document(
        _header(controls)
        + f'<main class="main">{main}</main>'
        + f'<footer class="footer">{FOOTER_NOTE}</footer>'
    )
