#!/usr/bin/env python3
"""
SpeedX CLI -- latency, jitter, download and upload from the terminal.

Usage::

    python speedx_cli.py                    # rich dashboard
    python speedx_cli.py --simple           # plain text
    python speedx_cli.py --json             # JSON to stdout
    python speedx_cli.py -o result.json     # save to file
    python speedx_cli.py --insights         # add a plain-language analysis
    python speedx_cli.py --download-url URL # use another download endpoint
"""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
import sys
from typing import Any, Dict, Optional

from speedx.api import ClientInfo, ClientInfoAPI
from speedx.config import Endpoints, load_config
from speedx.engine import SpeedTestEngine
from speedx.insights import get_network_insights
from speedx.logging_setup import configure_logging
from speedx.models import TestState
from ui.dashboard import (
    LiveDashboard,
    console,
    print_client_info,
    print_final_results,
    print_header,
    print_insight,
)
from ui.output import create_result_json, format_text_result, save_json

logger = logging.getLogger("speedx.cli")


async def _lookup_client(trace_url: str) -> ClientInfo:
    async with ClientInfoAPI(trace_url=trace_url) as api:
        return await api.get_client_info()


# ---------------------------------------------------------------------------
# Core test runner
# ---------------------------------------------------------------------------

async def run_speedtest(
    *,
    endpoints: Endpoints,
    json_output: bool = False,
    output_file: Optional[str] = None,
    simple: bool = False,
    insights: bool = False,
    insights_model: Optional[str] = None,
    client_lookup: bool = True,
) -> Optional[Dict[str, Any]]:
    """Execute one full run and return a JSON-serialisable dict (None on failure)."""

    show_ui = not json_output and not simple

    if show_ui:
        print_header()

    dashboard = LiveDashboard()
    engine = SpeedTestEngine(dashboard, endpoints=endpoints)

    # Client lookup runs alongside the test; the engine never waits for it.
    info_task = (
        asyncio.create_task(_lookup_client(endpoints.ping_url)) if client_lookup else None
    )

    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, engine.stop)
        sigint_hooked = True
    except (NotImplementedError, RuntimeError):
        # Windows or non-main thread: Ctrl+C arrives as KeyboardInterrupt in main()
        sigint_hooked = False

    if show_ui:
        dashboard.start()
    try:
        await engine.start()
    finally:
        if show_ui:
            dashboard.stop()
        if sigint_hooked:
            loop.remove_signal_handler(signal.SIGINT)

    state = engine.state
    metrics = engine.metrics
    details = engine.details
    engine.dispose()

    if state is not TestState.COMPLETE:
        if info_task:
            info_task.cancel()
            await asyncio.gather(info_task, return_exceptions=True)
        if state is TestState.ERROR:
            console.print("[red]Error: speed test failed[/red]")
        else:
            console.print("\n[yellow]Test cancelled by user[/yellow]")
        return None

    client_info = await info_task if info_task else None

    # -- Summary ------------------------------------------------------------
    if show_ui:
        if client_info:
            print_client_info(client_info.ip, client_info.isp, client_info.location)
        print_final_results(metrics)
    elif simple:
        print(format_text_result(
            metrics,
            ip=client_info.ip if client_info else "",
            isp=client_info.isp if client_info else "",
        ))

    # -- Insights -----------------------------------------------------------
    insight = None
    if insights:
        if show_ui:
            console.print("[dim]Analyzing connection...[/dim]")
        kwargs = {"model": insights_model} if insights_model else {}
        insight = await get_network_insights(state, metrics, **kwargs)
        if insight and show_ui:
            print_insight(insight)
        elif insight and simple:
            print("\n" + insight)

    # -- JSON result --------------------------------------------------------
    result_json = create_result_json(
        state,
        metrics,
        client_info=client_info.to_dict() if client_info else None,
        details=details,
        insight=insight,
    )

    if json_output:
        print(json.dumps(result_json, indent=2))

    if output_file:
        save_json(result_json, output_file)
        if not json_output:
            console.print(f"\n[green]Results saved to:[/green] {output_file}")

    return result_json


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="SpeedX -- network speed test with live progress",
    )
    # Output modes
    parser.add_argument("--json", "-j", action="store_true", help="Output results as JSON")
    parser.add_argument("--output", "-o", type=str, metavar="FILE", help="Save results to JSON file")
    parser.add_argument("--simple", "-s", action="store_true", help="Simple output mode (no dashboard)")
    parser.add_argument("--insights", action="store_true", help="Ask Gemini for a short analysis (needs GEMINI_API_KEY)")
    parser.add_argument("--no-client-info", action="store_true", help="Skip the IP / ISP / location lookup")

    # Endpoints
    parser.add_argument("--ping-url", type=str, metavar="URL", help="Latency (trace) endpoint")
    parser.add_argument("--download-url", type=str, metavar="URL", help="Download endpoint (takes a bytes=N query)")
    parser.add_argument("--upload-url", type=str, metavar="URL", help="Upload (POST echo) endpoint")

    parser.add_argument("--log-level", type=str, metavar="LEVEL", help="Logging level (default: from config, WARNING)")
    return parser


def main() -> None:
    args = build_parser().parse_args()
    config = load_config()

    for key in ("ping_url", "download_url", "upload_url"):
        value = getattr(args, key)
        if value:
            config[key] = value

    configure_logging(args.log_level or config.get("log_level", "WARNING"))

    try:
        endpoints = Endpoints.from_config(config)
    except (KeyError, TypeError, ValueError) as exc:
        console.print(f"[red]Error: invalid configuration: {exc}[/red]")
        sys.exit(1)

    try:
        result = asyncio.run(
            run_speedtest(
                endpoints=endpoints,
                json_output=args.json,
                output_file=args.output,
                simple=args.simple,
                insights=args.insights,
                insights_model=config.get("insights_model"),
                client_lookup=not args.no_client_info,
            )
        )
    except KeyboardInterrupt:
        console.print("\n[yellow]Test cancelled by user[/yellow]")
        sys.exit(1)
    except Exception as exc:
        logger.debug("Run failed", exc_info=True)
        console.print(f"\n[red]Error: {exc}[/red]")
        sys.exit(1)

    if result is None:
        sys.exit(1)


if __name__ == "__main__":
    main()
