import threading
import unicodedata
from typing import Iterable, List, Optional, Sequence, Tuple

from cachetools import LRUCache
from cachetools.keys import hashkey

from fetcher import RestaurantRecord

ALL_REGIONS = "전체"
INITIAL_COUNT = 12
LOAD_MORE_COUNT = 12


# ──────────────────────────────────────────────────────────────────────────────
# 정렬/필터 (순수 함수)
# ──────────────────────────────────────────────────────────────────────────────
def _script_group(ch: str) -> int:
    # 한국어 정렬 순서: 기호 < 숫자 < 한글 < 한자 < 그 외 문자(라틴 등)
    code = ord(ch)
    if 0xAC00 <= code <= 0xD7A3 or 0x1100 <= code <= 0x11FF or 0x3130 <= code <= 0x318F:
        return 2
    if 0x4E00 <= code <= 0x9FFF or 0x3400 <= code <= 0x4DBF or 0xF900 <= code <= 0xFAFF:
        return 3
    category = unicodedata.category(ch)
    if category == "Nd":
        return 1
    if category[0] in "LM":
        return 4
    return 0


def collation_key(text: Optional[str]) -> Tuple[Tuple[Tuple[int, str], ...], str]:
    """Ordering key matching Korean locale collation.

    Hangul sorts ahead of Latin (and 가나다 order is the code point order of
    precomposed syllables). Latin compares case-insensitively; on a tie the
    lower-case spelling comes first.
    """
    s = unicodedata.normalize("NFC", text or "")
    primary = tuple((_script_group(ch), ch.casefold()) for ch in s)
    return primary, s.swapcase()


def sort_records(records: Iterable[RestaurantRecord]) -> List[RestaurantRecord]:
    return sorted(records, key=lambda r: collation_key(r.name))


def region_options(records: Iterable[RestaurantRecord]) -> List[str]:
    names = {r.region_name for r in records if r.region_name}
    return [ALL_REGIONS] + sorted(names, key=collation_key)


def matches_region(record: RestaurantRecord, region: str) -> bool:
    return region == ALL_REGIONS or record.region_name == region


def matches_query(record: RestaurantRecord, query: str) -> bool:
    q = (query or "").strip().lower()
    if not q:
        return True
    return (
        q in (record.name or "").lower()
        or q in (record.road_address or "").lower()
        or q in (record.lot_address or "").lower()
    )


def filter_records(
    records: Sequence[RestaurantRecord], region: str, query: str
) -> List[RestaurantRecord]:
    rows = list(records) if region == ALL_REGIONS else [r for r in records if matches_region(r, region)]
    if (query or "").strip():
        rows = [r for r in rows if matches_query(r, query)]
    return rows


def visible_slice(filtered: Sequence[RestaurantRecord], display_count: int) -> List[RestaurantRecord]:
    return list(filtered[:display_count])


def normalize_display_count(count: Optional[int]) -> int:
    # 항상 LOAD_MORE_COUNT의 배수, 최소 INITIAL_COUNT
    if not count or count <= INITIAL_COUNT:
        return INITIAL_COUNT
    steps = -(-(count - INITIAL_COUNT) // LOAD_MORE_COUNT)
    return INITIAL_COUNT + steps * LOAD_MORE_COUNT


# ──────────────────────────────────────────────────────────────────────────────
# 데이터셋 + 파생 뷰 캐시
# ──────────────────────────────────────────────────────────────────────────────
class Catalog:
    """The fetched dataset, sorted once, with memoized filtered views."""

    def __init__(self, records: Iterable[RestaurantRecord], cache_size: int = 64):
        self.records: Tuple[RestaurantRecord, ...] = tuple(sort_records(records))
        self.regions: List[str] = region_options(self.records)
        self._cache: LRUCache = LRUCache(maxsize=cache_size)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self.records)

    def filtered(self, region: str, query: str) -> Tuple[RestaurantRecord, ...]:
        key = hashkey(region, (query or "").strip().lower())
        with self._lock:
            try:
                return self._cache[key]
            except KeyError:
                pass
        result = tuple(filter_records(self.records, region, query))
        with self._lock:
            self._cache[key] = result
        return result


# ──────────────────────────────────────────────────────────────────────────────
# 화면 상태
# ──────────────────────────────────────────────────────────────────────────────
class ListingView:
    """UI state over a catalog: region, typed/committed search, display count."""

    def __init__(self, catalog: Catalog):
        self.catalog = catalog
        self.selected_region: str = ALL_REGIONS
        self.display_count: int = INITIAL_COUNT
        self.search_text: str = ""
        self.search_query: str = ""

    @classmethod
    def from_params(
        cls,
        catalog: Catalog,
        region: Optional[str] = None,
        query: Optional[str] = None,
        count: Optional[int] = None,
    ) -> "ListingView":
        view = cls(catalog)
        view.selected_region = region or ALL_REGIONS
        view.search_text = view.search_query = query or ""
        view.display_count = normalize_display_count(count)
        return view

    @property
    def regions(self) -> List[str]:
        return self.catalog.regions

    @property
    def filtered(self) -> Tuple[RestaurantRecord, ...]:
        return self.catalog.filtered(self.selected_region, self.search_query)

    @property
    def visible(self) -> List[RestaurantRecord]:
        return visible_slice(self.filtered, self.display_count)

    @property
    def has_more(self) -> bool:
        return self.display_count < len(self.filtered)

    def select_region(self, region: str) -> None:
        self.selected_region = region
        self.display_count = INITIAL_COUNT

    def type_search(self, text: str) -> None:
        # 입력만으로는 필터링하지 않는다
        self.search_text = text

    def submit_search(self) -> None:
        self.search_query = self.search_text
        self.display_count = INITIAL_COUNT

    def load_more(self) -> None:
        self.display_count += LOAD_MORE_COUNT
