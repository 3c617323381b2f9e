import os, time, threading, logging
from typing import Any, Callable, Dict, List, Optional

import requests
from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import HTMLResponse, ORJSONResponse
from pydantic import BaseModel

from cards import map_url, render_error, render_listing, render_loading, tel_url
from fetcher import DEFAULT_API_BASE, DEFAULT_ERROR_MESSAGE, RestaurantRecord, fetch_all_restaurants
from listing import ALL_REGIONS, Catalog, ListingView

logger = logging.getLogger(__name__)

# ──────────────────────────────────────────────────────────────────────────────
# 설정
# ──────────────────────────────────────────────────────────────────────────────
load_dotenv()

class Config:
    API_BASE: str = os.getenv("GG_API_BASE", DEFAULT_API_BASE)
    API_KEY: str = os.getenv("GG_API_KEY") or "sample"
    TIMEOUT_SEC: float = float(os.getenv("GG_TIMEOUT_SEC", "8"))

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    HOST: str = os.getenv("HOST", "127.0.0.1")
    PORT: int = int(os.getenv("PORT", "8000"))

    ALLOWED_ORIGINS: List[str] = [x for x in os.getenv(
        "ALLOWED_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173"
    ).split(",") if x]


def setup_logging(level: Optional[str] = None) -> None:
    log_level = getattr(logging, (level or Config.LOG_LEVEL).upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("urllib3").setLevel(logging.WARNING)

# ──────────────────────────────────────────────────────────────────────────────
# 모델
# ──────────────────────────────────────────────────────────────────────────────
class RestaurantItem(BaseModel):
    name: Optional[str] = None
    food: Optional[str] = None
    phone: Optional[str] = None
    road_addr: Optional[str] = None
    lot_addr: Optional[str] = None
    region: Optional[str] = None
    tel_url: Optional[str] = None
    map_url: str

class RestaurantResponse(BaseModel):
    total: int
    count: int
    display_count: int
    has_more: bool
    region: str
    query: str
    items: List[RestaurantItem]

class RegionResponse(BaseModel):
    regions: List[str]

def to_item(r: RestaurantRecord) -> RestaurantItem:
    return RestaurantItem(
        name=r.name,
        food=r.representative_food,
        phone=r.phone,
        road_addr=r.road_address,
        lot_addr=r.lot_address,
        region=r.region_name,
        tel_url=tel_url(r),
        map_url=map_url(r),
    )

# ──────────────────────────────────────────────────────────────────────────────
# 데이터 저장소 (프로세스당 1회 로드)
# ──────────────────────────────────────────────────────────────────────────────
def default_fetch() -> List[RestaurantRecord]:
    with requests.Session() as session:
        return fetch_all_restaurants(
            session,
            api_base=Config.API_BASE,
            api_key=Config.API_KEY,
            timeout=Config.TIMEOUT_SEC,
        )

class RestaurantStore:
    def __init__(self, fetch: Callable[[], List[RestaurantRecord]] = default_fetch):
        self._fetch = fetch
        self._catalog: Optional[Catalog] = None
        self._error: Optional[str] = None
        self._loading: bool = True
        self._started: bool = False
        self._ts: float = 0.0
        self._lock = threading.Lock()

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "loading": self._loading,
                "error": self._error,
                "catalog": self._catalog,
                "loaded_at": self._ts,
            }

    def load(self) -> None:
        # 한 번만 로드, 재조회 없음
        with self._lock:
            if self._started:
                return
            self._started = True
            self._loading = True
            self._error = None
        try:
            catalog = Catalog(self._fetch())
        except Exception as e:
            # 어떤 실패든 오류 화면으로 노출, 재조회 없음
            logger.exception(f"Failed to load restaurants: {e}")
            with self._lock:
                self._error = str(e) or DEFAULT_ERROR_MESSAGE
                self._loading = False
            return
        with self._lock:
            self._catalog = catalog
            self._ts = time.time()
            self._loading = False
        logger.info(f"Loaded {len(catalog)} restaurants, {len(catalog.regions) - 1} regions")

    def start_background(self) -> None:
        threading.Thread(target=self.load, daemon=True).start()

    def catalog_or_raise(self) -> Catalog:
        state = self.snapshot()
        if state["error"]:
            raise HTTPException(status_code=502, detail=state["error"])
        if state["loading"] or state["catalog"] is None:
            raise HTTPException(status_code=503, detail="데이터를 불러오는 중…",
                                headers={"Retry-After": "2"})
        return state["catalog"]

STORE = RestaurantStore()

# ──────────────────────────────────────────────────────────────────────────────
# FastAPI 앱/미들웨어
# ──────────────────────────────────────────────────────────────────────────────
app = FastAPI(title="Gyeonggi Tasty Restaurants", default_response_class=ORJSONResponse)
app.add_middleware(GZipMiddleware, minimum_size=1024)
app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.ALLOWED_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "HEAD", "OPTIONS"],
    allow_headers=["Content-Type"],
)

@app.on_event("startup")
def _startup():
    setup_logging()
    if Config.API_KEY == "sample":
        logger.warning("GG_API_KEY not set - using the 'sample' key (limited rows)")
    STORE.start_background()

# ──────────────────────────────────────────────────────────────────────────────
# 라우트
# ──────────────────────────────────────────────────────────────────────────────
@app.get("/health")
def health():
    state = STORE.snapshot()
    catalog = state["catalog"]
    return {
        "ok": state["error"] is None,
        "loading": state["loading"],
        "error": state["error"],
        "loaded_at": state["loaded_at"],
        "count": len(catalog) if catalog else 0,
    }

@app.get("/regions", response_model=RegionResponse)
def list_regions():
    return RegionResponse(regions=STORE.catalog_or_raise().regions)

@app.get("/restaurants", response_model=RestaurantResponse)
def list_restaurants(
    region: str = Query(ALL_REGIONS, description="시군명, 전체는 '전체'"),
    q: Optional[str] = Query(None, description="식당 이름 또는 주소 부분검색"),
    count: Optional[int] = Query(None, ge=1, description="표시 개수 (12 단위로 올림)"),
):
    view = ListingView.from_params(STORE.catalog_or_raise(), region, q, count)
    visible = view.visible
    return RestaurantResponse(
        total=len(view.filtered),
        count=len(visible),
        display_count=view.display_count,
        has_more=view.has_more,
        region=view.selected_region,
        query=view.search_query,
        items=[to_item(r) for r in visible],
    )

@app.get("/", response_class=HTMLResponse)
def index(
    region: str = Query(ALL_REGIONS),
    q: Optional[str] = Query(None),
    count: Optional[int] = Query(None, ge=1),
):
    state = STORE.snapshot()
    if state["error"]:
        return HTMLResponse(render_error(state["error"]), status_code=502)
    if state["loading"] or state["catalog"] is None:
        return HTMLResponse(render_loading(), status_code=503)
    view = ListingView.from_params(state["catalog"], region, q, count)
    return HTMLResponse(render_listing(view))

# uvicorn app:app --reload --port 8000
def main() -> None:
    import uvicorn

    setup_logging()
    uvicorn.run(app, host=Config.HOST, port=Config.PORT)

if __name__ == "__main__":
    main()
