# psi_report/cli.py
import argparse
import asyncio
import sys
from typing import List, Optional

from psi_report.core.config import get_settings
from psi_report.core.logging_config import configure_logging
from psi_report.models import ClientConfig
from psi_report.services.processing_service import render_text
from psi_report.services.report_client import ReportClient


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    p = argparse.ArgumentParser(prog="psi-report", description="Landing page performance report (PageSpeed Insights)")
    sub = p.add_subparsers(dest="command", required=True)

    report = sub.add_parser("report", help="Run a report for one URL and print it")
    report.add_argument("url", help="Page URL to audit (scheme optional)")
    report.add_argument("--mode", choices=["demo", "live"], default=settings.REPORT_MODE, help="demo synthesizes data locally")
    report.add_argument("--endpoint", default=settings.REPORT_ENDPOINT, help="Proxy URL used in live mode")
    report.add_argument("--delay", type=float, default=settings.DEMO_DELAY_SECONDS, help="Simulated delay in demo mode (seconds)")

    serve = sub.add_parser("serve", help="Run the PSI proxy server")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    return p


async def run_report(url: str, config: ClientConfig) -> int:
    client = ReportClient(config)
    state = await client.submit(url)
    print(render_text(state))
    return 0 if state.status_kind == "good" else 1


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(get_settings().LOG_LEVEL)

    if args.command == "serve":
        import uvicorn
        uvicorn.run("psi_report.main:app", host=args.host, port=args.port)
        return 0

    config = ClientConfig(mode=args.mode, endpoint=args.endpoint or None, demo_delay=args.delay)
    return asyncio.run(run_report(args.url, config))


if __name__ == "__main__":
    sys.exit(main())
