import asyncio
from typing import Optional

from loguru import logger
from sqlalchemy.orm import sessionmaker

from src.bookings.booking_service import BookingService
from src.tickets.locking import LockService


def sweep_once(session_factory: sessionmaker) -> dict:
    """Reclaim expired locks and cancel stale pending bookings"""
    with session_factory() as db:
        reclaimed = LockService.reclaim_expired_locks(db)
        expired = BookingService(db).expire_stale_bookings()
    return {"reclaimed_locks": reclaimed, "expired_bookings": expired}


class LockSweeper:
    """Runs ``sweep_once`` on a fixed interval without blocking request handling"""

    def __init__(self, session_factory: sessionmaker, interval_seconds: float):
        self.session_factory = session_factory
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run(), name="lock-sweeper")
            logger.info(f"Lock sweeper started (every {self.interval_seconds}s)")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Lock sweeper stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await asyncio.to_thread(sweep_once, self.session_factory)
            except Exception:
                # One failed sweep must not end the loop
                logger.exception("Lock sweep failed")
