from fastapi import APIRouter, HTTPException, Request

from quotedesk.schemas.usage import CredentialsUpdate
from quotedesk.services.state_store import API_KEY_KEY, DEMO_MODE_KEY

router = APIRouter()


@router.get('/quotes/{symbol}')
def get_quote(symbol: str, request: Request):
    service = request.app.state.quote_gateway_service
    try:
        row = service.get_quote(symbol)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail='INVALID_SYMBOL') from exc
    return row.model_dump(mode='json')


@router.get('/quotes')
def get_quotes(request: Request, symbols: str | None = None):
    service = request.app.state.quote_gateway_service
    if symbols is None:
        req = list(request.app.state.get_settings().QUOTE_WATCHLIST)
    else:
        req = [s.strip() for s in symbols.split(',') if s.strip()]
    if not req:
        raise HTTPException(status_code=400, detail='INVALID_SYMBOL')
    return [row.model_dump(mode='json') for row in service.get_quotes(req)]


@router.get('/usage')
def usage_stats(request: Request):
    return request.app.state.quote_gateway_service.usage_stats().model_dump()


@router.get('/status')
def service_status(request: Request):
    return request.app.state.quote_gateway_service.status().model_dump()


@router.put('/settings/credentials')
def update_credentials(req: CredentialsUpdate, request: Request):
    service = request.app.state.quote_gateway_service
    if service.store is None:
        raise HTTPException(status_code=409, detail='SETTINGS_STORE_UNAVAILABLE')

    values: dict[str, str] = {}
    if req.api_key is not None:
        values[API_KEY_KEY] = req.api_key.strip()
    if req.demo_mode is not None:
        values[DEMO_MODE_KEY] = 'true' if req.demo_mode else 'false'
    if not values:
        raise HTTPException(status_code=400, detail='NO_SETTINGS_PROVIDED')

    service.store.update(values)
    service.reload_credentials()
    return service.status().model_dump()


@router.get('/metrics/quote')
def quote_metrics(request: Request):
    service = request.app.state.quote_gateway_service
    metrics = service.metrics()
    metrics['cooldown_active'] = service.usage_tracker.cooldown_active()
    return metrics
