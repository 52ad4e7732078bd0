import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from watchdesk.cache import get_digest
from watchdesk.db.session import get_session
from watchdesk.db.watchlist import (
    add_watchlist_item,
    get_watchlist_symbols,
    list_watchlist_items,
    remove_watchlist_item,
)
from watchdesk.errors import ErrorKind, MarketDataError
from watchdesk.jobs.queue import enqueue_news_digest
from watchdesk.schemas.market import StockDetails, StockSearchResult
from watchdesk.schemas.news import NewsArticle, NewsDigest
from watchdesk.schemas.watchlist import (
    DigestJobResponse,
    WatchlistItemResponse,
    WatchlistRequest,
    WatchlistStock,
)
from watchdesk.services.context import MarketDataContext
from watchdesk.services.news import get_news
from watchdesk.services.search import search_stocks
from watchdesk.services.stock_details import get_stock_details, normalize_symbol
from watchdesk.services.watchlist import get_watchlist_news, get_watchlist_with_data

logger = logging.getLogger(__name__)

router = APIRouter()

_ERROR_STATUS = {
    ErrorKind.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorKind.DATA_INVALID: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFIG_MISSING: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorKind.TRANSIENT: status.HTTP_502_BAD_GATEWAY,
}


def get_market_context(request: Request) -> MarketDataContext:
    return request.app.state.market_context


def get_user_id(x_user_id: str | None = Header(default=None)) -> str:
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Missing user identity."},
        )
    return user_id


def _raise_for_market_error(exc: MarketDataError) -> None:
    raise HTTPException(
        status_code=_ERROR_STATUS.get(exc.kind, status.HTTP_502_BAD_GATEWAY),
        detail={"message": str(exc), "kind": exc.kind.value},
    ) from exc


def _item_response(item) -> WatchlistItemResponse:
    return WatchlistItemResponse(
        symbol=item.symbol,
        company_name=item.company_name,
        active=item.active,
        added_at=item.added_at,
        removed_at=item.removed_at,
    )


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/stocks/search", response_model=list[StockSearchResult])
async def search_stocks_endpoint(
    q: str | None = None,
    user_id: str = Depends(get_user_id),
    context: MarketDataContext = Depends(get_market_context),
    db: AsyncSession = Depends(get_session),
) -> list[StockSearchResult]:
    watchlist_symbols = await get_watchlist_symbols(db, user_id)
    try:
        return await search_stocks(context, q, watchlist_symbols)
    except MarketDataError as exc:
        _raise_for_market_error(exc)


@router.get("/stocks/{symbol}", response_model=StockDetails)
async def stock_details_endpoint(
    symbol: str, context: MarketDataContext = Depends(get_market_context)
) -> StockDetails:
    try:
        details = await get_stock_details(context, symbol)
    except MarketDataError as exc:
        _raise_for_market_error(exc)
    if details is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found.")
    return details


@router.get("/news", response_model=list[NewsArticle])
async def news_endpoint(
    symbols: str | None = None,
    max_articles: int = Query(default=6, ge=1, le=50),
    context: MarketDataContext = Depends(get_market_context),
) -> list[NewsArticle]:
    symbol_list = symbols.split(",") if symbols else None
    try:
        return await get_news(context, symbol_list, max_articles)
    except MarketDataError as exc:
        _raise_for_market_error(exc)


@router.get("/watchlist", response_model=list[WatchlistItemResponse])
async def list_watchlist(
    user_id: str = Depends(get_user_id), db: AsyncSession = Depends(get_session)
) -> list[WatchlistItemResponse]:
    items = await list_watchlist_items(db, user_id)
    return [_item_response(item) for item in items]


@router.get("/watchlist/stocks", response_model=list[WatchlistStock])
async def watchlist_stocks(
    user_id: str = Depends(get_user_id),
    context: MarketDataContext = Depends(get_market_context),
    db: AsyncSession = Depends(get_session),
) -> list[WatchlistStock]:
    items = await list_watchlist_items(db, user_id)
    try:
        return await get_watchlist_with_data(context, items)
    except MarketDataError as exc:
        _raise_for_market_error(exc)


@router.post("/watchlist", response_model=WatchlistItemResponse)
async def add_watchlist(
    payload: WatchlistRequest,
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_session),
) -> WatchlistItemResponse:
    symbol = normalize_symbol(payload.symbol)
    if not symbol:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Symbol is required.",
        )
    company_name = payload.company_name.strip() or symbol
    item = await add_watchlist_item(db, user_id, symbol, company_name)
    return _item_response(item)


@router.delete("/watchlist/{symbol}", response_model=WatchlistItemResponse)
async def remove_watchlist(
    symbol: str,
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_session),
) -> WatchlistItemResponse:
    item = await remove_watchlist_item(db, user_id, normalize_symbol(symbol))
    if item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found.")
    return _item_response(item)


@router.get("/watchlist/news", response_model=list[NewsArticle])
async def watchlist_news(
    user_id: str = Depends(get_user_id),
    context: MarketDataContext = Depends(get_market_context),
    db: AsyncSession = Depends(get_session),
) -> list[NewsArticle]:
    symbols = await get_watchlist_symbols(db, user_id)
    try:
        return await get_watchlist_news(
            context, symbols, context.market.max_news_articles
        )
    except MarketDataError as exc:
        _raise_for_market_error(exc)


@router.post("/watchlist/digest", response_model=DigestJobResponse)
def queue_digest(user_id: str = Depends(get_user_id)) -> DigestJobResponse:
    job = enqueue_news_digest(user_id)
    logger.info("Queued news digest job %s for %s", job.id, user_id)
    return DigestJobResponse(job_id=job.id)


@router.get("/watchlist/digest", response_model=NewsDigest)
def read_digest(user_id: str = Depends(get_user_id)) -> NewsDigest:
    digest = get_digest(user_id)
    if digest is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found.")
    return digest
