"""Fixtures wiring the services to the in-memory fakes."""

import pytest

from src.bx_book.application.service import BookService
from src.bx_exchange.application.service import ExchangeService
from src.bx_report.application.service import ReportService
from src.bx_valuation.application.service import BookValuationService
from src.bx_valuation.domain.estimator import HeuristicPointEstimator
from tests.unit.fakes import (
    FakeAccountRepository,
    FakeBookRepository,
    FakeExchangeRepository,
    FakeReportRepository,
    FakeSession,
    FakeUserDirectory,
    FakeValuationRepository,
    InMemoryStore,
    InMemoryValuationCache,
    World,
)


@pytest.fixture
def world() -> World:
    store = InMemoryStore()
    book_repo = FakeBookRepository(store)
    exchange_repo = FakeExchangeRepository(store)
    cache = InMemoryValuationCache()
    valuation = BookValuationService(
        book_repo=book_repo,
        valuation_repo=FakeValuationRepository(store),
        cache=cache,
        estimator=HeuristicPointEstimator(),
    )
    return World(
        store=store,
        db=FakeSession(store),
        cache=cache,
        exchange_repo=exchange_repo,
        valuation=valuation,
        exchanges=ExchangeService(
            exchange_repo=exchange_repo,
            book_repo=book_repo,
            account_repo=FakeAccountRepository(store),
            valuation=valuation,
        ),
        reports=ReportService(
            report_repo=FakeReportRepository(store),
            exchange_repo=exchange_repo,
            users=FakeUserDirectory(store),
        ),
        books=BookService(book_repo=book_repo, exchange_repo=exchange_repo),
    )
