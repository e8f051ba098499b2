"""PulseTrade — application entry point.

Boots the FastAPI internal server and provides the CLI entry point for the
continuous analysis loop and one-shot analysis.
"""

import logging

from fastapi import FastAPI

from pulsetrade.api.routers import router

app = FastAPI(title="PulseTrade Internal API", version="0.1.0")
app.include_router(router)

logger = logging.getLogger("pulsetrade")


@app.get("/health")
async def health():
    """Liveness probe."""
    return {"status": "ok"}


# ── CLI ──────────────────────────────────────────────────────────────────


def build_engine(config):
    """Wire feed, analyzer and notifier from *config*."""
    from pulsetrade.engine import AnalysisEngine
    from pulsetrade.feed.binance_client import BinanceClient
    from pulsetrade.notify.telegram import build_notifier
    from pulsetrade.strategy.analyzer import MarketAnalyzer

    analyzer = MarketAnalyzer(
        config.thresholds,
        advisor_cooldown_seconds=config.advisor_cooldown_seconds,
    )
    return AnalysisEngine(
        config=config,
        feed=BinanceClient(config),
        analyzer=analyzer,
        notifier=build_notifier(config),
    )


def _run_cli() -> None:
    """Parse CLI arguments and dispatch to the appropriate mode."""
    import argparse
    import asyncio
    import json
    import signal

    from pulsetrade.api.routers import analysis_to_dict
    from pulsetrade.config import load_config

    parser = argparse.ArgumentParser(description="PulseTrade market analysis bot")
    parser.add_argument(
        "--once",
        action="store_true",
        help="Fetch candles, print one analysis as JSON and exit",
    )
    parser.add_argument(
        "--engine-only",
        action="store_true",
        help="Run the analysis loop without the API server",
    )
    args = parser.parse_args()

    config = load_config()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if args.once:
        async def _analyze_once():
            from pulsetrade.feed.binance_client import BinanceClient
            from pulsetrade.strategy.analyzer import MarketAnalyzer

            candles = await BinanceClient(config).fetch_configured_candles()
            analysis = MarketAnalyzer(config.thresholds).analyze(candles)
            print(json.dumps(analysis_to_dict(analysis), indent=2))

        asyncio.run(_analyze_once())
        return

    engine = build_engine(config)

    def handle_shutdown(signum, frame):
        logger.info("Shutdown signal received — stopping gracefully.")
        engine.stop()

    signal.signal(signal.SIGINT, handle_shutdown)

    if args.engine_only:
        asyncio.run(_run_engine_only(engine))
    else:
        asyncio.run(_run_with_api(engine, config.api_port))


async def _run_with_api(engine, port: int = 8080) -> None:
    """Start the API server and the analysis loop concurrently."""
    import asyncio
    import uvicorn

    uvi_config = uvicorn.Config(app, host="0.0.0.0", port=port, log_level="info")
    server = uvicorn.Server(uvi_config)

    async def _run_engine():
        try:
            await engine.run()
        finally:
            server.should_exit = True

    logger.info("API available at http://localhost:%d", port)
    results = await asyncio.gather(
        server.serve(),
        _run_engine(),
        return_exceptions=True,
    )
    logger.info("PulseTrade stopped. Results: %s", results[1:])


async def _run_engine_only(engine) -> None:
    """Run the analysis loop without starting the API server."""
    logger.info("Starting PulseTrade engine (no API).")
    await engine.run()
    logger.info("PulseTrade engine stopped.")


if __name__ == "__main__":
    _run_cli()
