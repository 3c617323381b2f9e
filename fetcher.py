import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

# ──────────────────────────────────────────────────────────────────────────────
# 경기도 오픈API (경기으뜸맛집)
# ──────────────────────────────────────────────────────────────────────────────
SERVICE = "PlaceThatDoATasteyFoodSt"
DEFAULT_API_BASE = f"https://openapi.gg.go.kr/{SERVICE}"
DATA_TYPE = "json"
PAGE_SIZE = 100
SUCCESS_CODE = "INFO-000"
DEFAULT_ERROR_MESSAGE = "데이터를 불러올 수 없습니다."


class FetchError(Exception):
    """Any failure while collecting the dataset (transport, JSON, vendor status)."""


# ──────────────────────────────────────────────────────────────────────────────
# 모델
# ──────────────────────────────────────────────────────────────────────────────
def _text(row: dict, key: str) -> Optional[str]:
    value = row.get(key)
    return None if value is None else str(value)


@dataclass(frozen=True)
class RestaurantRecord:
    name: Optional[str]
    representative_food: Optional[str]
    phone: Optional[str]
    road_address: Optional[str]
    lot_address: Optional[str]
    region_name: Optional[str]    # SIGUN_NM (시군)

    @classmethod
    def from_row(cls, row: dict) -> "RestaurantRecord":
        return cls(
            name=_text(row, "RESTRT_NM"),
            representative_food=_text(row, "REPRSNT_FOOD_NM"),
            phone=_text(row, "TASTFDPLC_TELNO"),
            road_address=_text(row, "REFINE_ROADNM_ADDR"),
            lot_address=_text(row, "REFINE_LOTNO_ADDR"),
            region_name=_text(row, "SIGUN_NM"),
        )


# ──────────────────────────────────────────────────────────────────────────────
# 페이지 조회
# ──────────────────────────────────────────────────────────────────────────────
def normalize_row(row: Any) -> List[dict]:
    # 한 페이지에 1건이면 row가 배열이 아닌 객체로 내려온다
    if isinstance(row, list):
        return row
    return [row] if row else []


def read_total(head_section: Any) -> int:
    try:
        return int(head_section["head"][0]["list_total_count"])
    except (KeyError, IndexError, TypeError, ValueError, OverflowError):
        return 0


def fetch_page(
    session,
    page: int,
    api_base: str = DEFAULT_API_BASE,
    api_key: str = "sample",
    page_size: int = PAGE_SIZE,
    timeout: float = 8,
) -> Dict[str, Any]:
    params = {"KEY": api_key, "Type": DATA_TYPE, "pIndex": page, "pSize": page_size}
    try:
        r = session.get(api_base, params=params, timeout=timeout)
    except requests.RequestException as e:
        raise FetchError(f"Upstream request failed: {e}") from e
    if r.status_code != 200:
        raise FetchError(f"Upstream HTTP {r.status_code}")
    try:
        data = r.json()
    except ValueError as e:
        raise FetchError("Upstream JSON decode error") from e
    if not isinstance(data, dict):
        # 객체가 아닌 응답은 데이터 없음으로 본다
        return {}

    # 공공API는 실패도 200으로 내려준다
    result = data.get("RESULT")
    if isinstance(result, dict) and result.get("CODE") != SUCCESS_CODE:
        raise FetchError(result.get("MESSAGE") or DEFAULT_ERROR_MESSAGE)
    return data


def fetch_all_restaurants(
    session=None,
    api_base: str = DEFAULT_API_BASE,
    api_key: str = "sample",
    page_size: int = PAGE_SIZE,
    timeout: float = 8,
) -> List[RestaurantRecord]:
    """Collect every page of the dataset, one request at a time.

    Stops when the accumulated rows reach ``list_total_count`` or a page comes
    back shorter than ``page_size``. Any failure aborts the whole collection.
    """
    if session is None:
        with requests.Session() as session:
            return fetch_all_restaurants(session, api_base, api_key, page_size, timeout)

    rows: List[dict] = []
    page = 1
    has_more = True

    while has_more:
        data = fetch_page(session, page, api_base, api_key, page_size, timeout)

        svc = data.get(SERVICE)
        if not isinstance(svc, list) or len(svc) < 2:
            logger.debug(f"page {page}: no data section, stopping")
            break

        body = svc[1] if isinstance(svc[1], dict) else {}
        page_rows = normalize_row(body.get("row"))
        rows.extend(page_rows)

        total = read_total(svc[0])
        logger.debug(f"page {page}: {len(page_rows)} rows ({len(rows)}/{total})")
        has_more = len(rows) < total and len(page_rows) == page_size
        page += 1

    logger.info(f"Fetched {len(rows)} restaurants")
    return [RestaurantRecord.from_row(r) for r in rows if isinstance(r, dict)]
