"""
SEI protocol engagement analytics.

Console entry point ``sei-engagement``: loads the configured activity
table, logs an engagement summary and optionally exports the dashboard
view model as JSON.
"""

from __future__ import annotations

import argparse
import logging
import logging.handlers
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


def configure_logging(log_cfg: dict) -> logging.Logger:
    """
    Configure the package logger (``src``) from the ``logging`` config
    section: a stream handler plus a rotating file handler.  Handlers are
    attached once; later calls only update the level.
    """
    app_logger = logging.getLogger(__name__)
    app_logger.setLevel(getattr(logging, str(log_cfg["level"]).upper(), logging.INFO))
    if app_logger.handlers:
        return app_logger

    formatter = logging.Formatter(log_cfg["format"])

    stream = logging.StreamHandler()
    stream.setFormatter(formatter)
    app_logger.addHandler(stream)

    log_file = log_cfg.get("file")
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=int(log_cfg["max_bytes"]),
            backupCount=int(log_cfg["backup_count"]),
            encoding="utf-8",
        )
        handler.setFormatter(formatter)
        app_logger.addHandler(handler)
    return app_logger


def main(argv: list[str] | None = None) -> int:
    from src.dashboard.view_model import DashboardViewBuilder
    from src.pipeline.loader import EngagementPipeline, load_config
    from src.pipeline.state import Failed

    parser = argparse.ArgumentParser(
        prog="sei-engagement",
        description="Aggregate per-protocol activity into engagement metrics.",
    )
    parser.add_argument("--config", default="config/config.yaml", help="YAML config path")
    parser.add_argument("--source", default=None, help="CSV path or URL (overrides config)")
    parser.add_argument("--export", default=None, help="write the dashboard view JSON here")
    args = parser.parse_args(argv)

    configure_logging(load_config(args.config)["logging"])
    pipeline = EngagementPipeline(config_path=args.config, source=args.source)

    state = pipeline.load()
    if isinstance(state, Failed):
        print(f"Error ({state.kind.value}): {state.message}", file=sys.stderr)
        return 1

    result = state.result
    stats = result.engagement
    print(
        f"protocols={stats.total_protocols} "
        f"healthy={stats.healthy_engagement} "
        f"high_concentration={stats.high_concentration} "
        f"days={len(result.daily)}"
    )

    dash_cfg = pipeline.cfg["dashboard"]
    export_path = args.export or dash_cfg.get("export_path")
    if export_path:
        builder = DashboardViewBuilder(
            top_n=dash_cfg["top_n"],
            threshold=pipeline.classifier.threshold,
            precision=pipeline.classifier.precision,
        )
        builder.export_view(result, export_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
