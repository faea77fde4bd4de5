"""Queued processing of purchases into points and cashback."""

from __future__ import annotations

import logging
import math
import queue
import threading
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from leal import entities
from leal.errors import NotFoundError
from leal.money import round_to_two_decimals
from leal.ports import Repository
from leal.requests import ProcessTransaction

logger = logging.getLogger(__name__)

QUEUE_SIZE = 100

_STOP = object()


def _round_half_away(value: float) -> int:
    if not math.isfinite(value):
        raise ValueError(f"cannot round {value!r} to an integer")
    return int(Decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def calculate_earnings(
    amount: float,
    factor: entities.ConversionFactor,
    campaign: Optional[entities.Campaign],
) -> tuple[int, float]:
    """Return the points (rounded) and raw cashback a purchase earns."""
    points = amount * factor.points_per_currency
    cashback = amount * factor.cashback_per_currency
    if campaign is not None and amount >= (campaign.min_purchase_amount or 0.0):
        points *= campaign.points_multiplier
        cashback *= campaign.cashback_multiplier
    return _round_half_away(points), cashback


class TransactionService:
    """Processes purchases on a pool of worker threads fed by a bounded queue."""

    def __init__(self, repo: Repository, worker_count: int) -> None:
        if worker_count < 1:
            raise ValueError("worker_count must be at least 1")
        self.repo = repo
        self._queue: queue.Queue = queue.Queue(maxsize=QUEUE_SIZE)
        self._lock = threading.Lock()
        self._closed = False
        self._workers = [
            threading.Thread(target=self._work, args=(index,), name=f"transaction-worker-{index}", daemon=True)
            for index in range(worker_count)
        ]
        for worker in self._workers:
            worker.start()

    def __enter__(self) -> TransactionService:
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()

    def add_transaction(self, transaction: ProcessTransaction) -> None:
        """Queue a purchase; blocks while the queue is full."""
        with self._lock:
            if self._closed:
                raise RuntimeError("transaction service has been shut down")
        self._queue.put(transaction)

    def _work(self, index: int) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                return
            logger.info("[Worker %d] Procesando transacción: %r", index, item)
            try:
                self.process_transaction(item)
            except Exception as exc:
                logger.error("Error en id %d: %s", index, exc)

    def process_transaction(self, request: ProcessTransaction) -> entities.Earnings:
        """Record a purchase and credit the user's balance; return the earnings."""
        branch = self.repo.find_branch(request.branch_id)
        if branch is None:
            raise NotFoundError(f"branch {request.branch_id} not found")
        factor = self.repo.find_conversion_factor(branch.business_tax_id, request.branch_id)
        if factor is None:
            raise NotFoundError(f"no conversion factor for branch {request.branch_id}")

        try:
            campaign = self.repo.find_active_campaign(request.branch_id, datetime.now())
        except Exception as exc:
            logger.debug("no active campaign for branch %d: %s", request.branch_id, exc)
            campaign = None

        points, cashback = calculate_earnings(request.valor, factor, campaign)
        transaction = entities.Transaction(
            user_document_number=request.user.document_number,
            branch_id=request.branch_id,
            amount=request.valor,
        )
        earnings = entities.Earnings(
            points_earned=points,
            cashback_earned=round_to_two_decimals(cashback),
        )
        self.repo.save_transaction(transaction, earnings)
        self.repo.update_user_balance(
            request.user.document_number, earnings.points_earned, earnings.cashback_earned
        )
        return earnings

    def shutdown(self) -> None:
        """Stop accepting purchases and wait until the queued ones are processed."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        for _ in self._workers:
            self._queue.put(_STOP)
        for worker in self._workers:
            worker.join()