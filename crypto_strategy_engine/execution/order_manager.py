"""Order submission to Binance, or simulated fills when no exchange is wired in."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Literal, Optional

import aiohttp

from ..errors import OrderRejected
from ..exchanges import BinanceAPIException, BinanceRequestException, BinanceService

logger = logging.getLogger(__name__)

OrderType = Literal['MARKET', 'LIMIT']


@dataclass(frozen=True)
class OrderRequest:
    symbol: str
    side: str
    quantity: float
    price: float | None = None
    order_type: OrderType = 'MARKET'

    def __post_init__(self) -> None:
        if self.quantity <= 0:
            raise ValueError('quantity must be positive')
        if self.order_type == 'LIMIT' and not self.price:
            raise ValueError('LIMIT orders need a price')


@dataclass
class OrderResult:
    order_id: str
    status: str
    filled_quantity: float
    filled_price: float | None
    raw: dict = field(default_factory=dict)


class OrderManager:
    """The executor boundary: takes concrete orders, returns exchange order ids."""

    def __init__(self, service: Optional[BinanceService] = None) -> None:
        self._service = service
        self._id_counter = 0
        self._lock = asyncio.Lock()

    async def submit(self, request: OrderRequest) -> OrderResult:
        if self._service is None:
            return await self._submit_simulated(request)
        return await self._submit_live(self._service, request)

    async def _submit_live(self, service: BinanceService, request: OrderRequest) -> OrderResult:
        client = await service.client()
        params = {
            'symbol': request.symbol.upper(),
            'side': request.side.upper(),
            'type': request.order_type,
            'quantity': float(request.quantity),
            'recvWindow': service.config.recv_window,
        }
        if request.order_type == 'LIMIT':
            params['price'] = f'{request.price:.8f}'
            params['timeInForce'] = 'GTC'
        try:
            response = await client.create_order(**params)
        except (BinanceAPIException, BinanceRequestException, aiohttp.ClientError) as exc:  # pragma: no cover - network path
            logger.error('Order for %s rejected: %s', request.symbol, exc)
            raise OrderRejected(f'Order rejected: {exc}') from exc

        filled_qty = float(response.get('executedQty', 0.0))
        quote_qty = float(response.get('cummulativeQuoteQty', 0.0))
        filled_price = quote_qty / filled_qty if filled_qty and quote_qty else request.price
        return OrderResult(
            order_id=str(response.get('orderId', '')),
            status=response.get('status', 'PENDING'),
            filled_quantity=filled_qty,
            filled_price=filled_price,
            raw=response,
        )

    async def _submit_simulated(self, request: OrderRequest) -> OrderResult:
        async with self._lock:
            self._id_counter += 1
            order_id = f'sim-{self._id_counter}'
        return OrderResult(
            order_id=order_id,
            status='FILLED',
            filled_quantity=float(request.quantity),
            filled_price=request.price,
            raw={'simulated': True},
        )

    async def close(self) -> None:
        if self._service is not None:
            await self._service.close()


__all__ = ['OrderManager', 'OrderRequest', 'OrderResult', 'OrderType']
