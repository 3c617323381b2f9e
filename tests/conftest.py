"""Fakes and builders shared by the test modules."""

from typing import Any, List, Optional

from fetcher import SERVICE, RestaurantRecord


class FakeResponse:
    def __init__(self, payload: Any, status_code: int = 200):
        self.payload = payload
        self.status_code = status_code

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeSession:
    """Replays queued responses and records the params of every request."""

    def __init__(self, responses: List[Any]):
        self.responses = list(responses)
        self.calls: List[dict] = []

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, FakeResponse):
            return item
        return FakeResponse(item)


def make_row(i: int, **overrides) -> dict:
    row = {
        "RESTRT_NM": f"식당{i}",
        "REPRSNT_FOOD_NM": "한식",
        "TASTFDPLC_TELNO": "031-000-0000",
        "REFINE_ROADNM_ADDR": f"경기도 수원시 팔달구 {i}번길",
        "REFINE_LOTNO_ADDR": f"경기도 수원시 팔달구 {i}",
        "SIGUN_NM": "수원시",
    }
    row.update(overrides)
    return row


def make_page(rows: Any, total: Optional[int]) -> dict:
    head = {"head": [{"list_total_count": total}] if total is not None else []}
    return {SERVICE: [head, {"row": rows}]}


def make_record(name: Optional[str] = None, region: Optional[str] = "수원시", **kwargs) -> RestaurantRecord:
    fields = {
        "name": name,
        "representative_food": None,
        "phone": None,
        "road_address": None,
        "lot_address": None,
        "region_name": region,
    }
    fields.update(kwargs)
    return RestaurantRecord(**fields)
