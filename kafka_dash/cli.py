"""Command-line entry: ``kafka-dash [-b BROKERS] {list,describe}``."""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Callable, Optional, Sequence

from pydantic import ValidationError

from kafka_dash import __version__
from kafka_dash.core.config import Settings, get_settings
from kafka_dash.core.errors import DashboardError
from kafka_dash.core.logs import setup_logging
from kafka_dash.domain.services.metadata_service import ClientFactory, MetadataService
from kafka_dash.domain.services.report_format import format_report
from kafka_dash.infra.kafka.client import open_client
from kafka_dash.tui.app import DashboardApp, DashboardContext

LOG = logging.getLogger("kafka_dash")


def _shared_options(defaults: bool) -> argparse.ArgumentParser:
    """Options accepted both before and after the subcommand.

    The subcommand copy uses SUPPRESS so it never overwrites a value given
    before the subcommand.
    """
    ap = argparse.ArgumentParser(add_help=False)
    d = (lambda v: v) if defaults else (lambda _v: argparse.SUPPRESS)
    ap.add_argument("-b", "--brokers", default=d(None),
                    help="Comma-separated host:port broker list (default: localhost:9092)")
    ap.add_argument("--log-level", default=d(None),
                    help="Logging level (DEBUG, INFO, WARNING, ERROR)")
    ap.add_argument("--log-file", default=d(None),
                    help="Write logs to this file instead of the Textual console")
    return ap


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="kafka-dash",
        description="A Kafka CLI tool to list topics and inspect partition metadata",
        parents=[_shared_options(defaults=True)],
        allow_abbrev=False,
    )
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = ap.add_subparsers(dest="command")
    sub.add_parser("list", help="List all Kafka topics (interactive dashboard)",
                   parents=[_shared_options(defaults=False)])
    describe = sub.add_parser("describe", help="Print the partition report of one topic",
                              parents=[_shared_options(defaults=False)])
    describe.add_argument("topic", help="Topic name")
    return ap


def resolve_settings(args: argparse.Namespace, base: Optional[Settings] = None) -> Settings:
    """Apply command-line overrides on top of the environment settings."""
    base = base or get_settings()
    update: dict = {}
    if args.brokers:
        update["brokers"] = args.brokers
    if args.log_level:
        update["log_level"] = args.log_level
    if args.log_file:
        update["log_file"] = args.log_file
    if not update:
        return base
    # model_copy skips validation; re-validate so --brokers gets parsed
    return Settings.model_validate({**base.model_dump(), **update})


def build_service(settings: Settings, connect: Optional[ClientFactory] = None) -> MetadataService:
    return MetadataService(
        connect or (lambda: open_client(settings)),
        query_timeout_sec=settings.query_timeout_sec,
        max_workers=settings.max_workers,
    )


def run_list(settings: Settings, service: MetadataService) -> int:
    summaries = service.list_topic_summaries()
    app = DashboardApp(DashboardContext(settings, service, summaries))
    rc = app.run()
    return 0 if rc is None else rc


def run_describe(service: MetadataService, topic: str) -> int:
    report = service.build_report(topic)
    sys.stdout.write(format_report(report))
    return 0


def main(argv: Optional[Sequence[str]] = None,
         connect: Optional[Callable[[Settings], ClientFactory]] = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)
    if args.command is None:
        ap.print_help()
        return 0

    try:
        settings = resolve_settings(args)
    except ValidationError as exc:
        ap.error(f"invalid configuration: {exc.errors()[0]['msg']}")

    setup_logging(settings.log_level, settings.log_file)
    service = build_service(settings, connect(settings) if connect else None)

    try:
        if args.command == "describe":
            return run_describe(service, args.topic)
        return run_list(settings, service)
    except DashboardError as exc:
        LOG.debug("fatal: %s", exc, exc_info=True)
        print(exc, file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
