"""Main FastAPI application."""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fintrack.config import Settings, settings
from fintrack.constants import Events
from fintrack.database import Base, build_engine, build_session_factory
from fintrack.routers import accounts, stats, total, transactions
from fintrack.services.currency.coingecko_client import CoinGeckoClient
from fintrack.services.currency.ecb_client import EcbRatesClient
from fintrack.services.currency.rates_cache import RateCache
from fintrack.services.currency.rates_service import CurrencyRatesService
from fintrack.services.currency.yahoo_quote_client import YahooQuoteClient
from fintrack.services.events import EventBus
from fintrack.services.portfolio.total_calculator import TotalCalculator
from fintrack.services.portfolio.valuation_service import PortfolioValuationService

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


def build_rates_service(app_settings: Settings, store: RateCache) -> CurrencyRatesService:
    """Wire the ECB fiat source and the crypto quote sources."""
    crypto_sources = [
        CoinGeckoClient(
            api_key=app_settings.coingecko_api_key or None,
            base_url=app_settings.coingecko_base_url,
            timeout=app_settings.http_timeout_seconds,
            max_retries=app_settings.http_max_retries,
        )
    ]
    if app_settings.use_yahoo_quotes:
        crypto_sources.append(YahooQuoteClient())

    return CurrencyRatesService(
        EcbRatesClient(
            url=app_settings.ecb_rates_url,
            timeout=app_settings.http_timeout_seconds,
            max_retries=app_settings.http_max_retries,
        ),
        crypto_sources,
        store=store,
        cache_duration=app_settings.rates_cache_duration,
        crypto_symbols=app_settings.crypto_symbols,
    )


def create_app(
    app_settings: Settings | None = None,
    rates_service: CurrencyRatesService | None = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        app_settings: Settings to use instead of the environment
        rates_service: Prebuilt rates service (tests pass one without network sources)
    """
    app_settings = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = build_engine(app_settings.database_url, echo=app_settings.debug)
        Base.metadata.create_all(bind=engine)
        session_factory = build_session_factory(engine)

        service = rates_service or build_rates_service(app_settings, RateCache(session_factory))
        events = EventBus()
        calculator = TotalCalculator(
            service,
            valuation=PortfolioValuationService(
                reference_currency=app_settings.reference_currency,
                freshness=app_settings.stats_freshness,
            ),
            events=events,
        )
        calculator.attach_loop(asyncio.get_running_loop())
        events.subscribe(Events.ACCOUNTS_CHANGED, calculator.handle_accounts_changed)

        app.state.settings = app_settings
        app.state.engine = engine
        app.state.session_factory = session_factory
        app.state.rates_service = service
        app.state.events = events
        app.state.total_calculator = calculator
        logger.info(f"Started with database {engine.url.render_as_string(hide_password=True)}")

        try:
            yield
        finally:
            await calculator.wait_idle()
            service.close()
            engine.dispose()
            logger.info("Shut down cleanly")

    app = FastAPI(
        title="Fintrack API",
        description="Personal accounts, transactions and portfolio value over time",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {"message": "Fintrack API", "version": "0.1.0", "status": "running"}

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    app.include_router(accounts.router)
    app.include_router(transactions.router)
    app.include_router(total.router)
    app.include_router(stats.router)

    return app


app = create_app()
