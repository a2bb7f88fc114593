"""
Tests for the ``sei-engagement`` console entry point (src/__init__.py).
"""

import json
import logging
import textwrap

import pytest

from src import main


CONFIG = textwrap.dedent("""\
    source:
      location: data.csv
      timeout_seconds: 5
      delimiter: ","

    engagement:
      threshold: 100
      precision: 2
      legacy_rounding: false

    dashboard:
      top_n: 10
      display_date_format: "%Y-%m-%d"
      export_path: null

    logging:
      level: WARNING
      format: "%(message)s"
      file: logs/test.log
      max_bytes: 1048576
      backup_count: 1
""")


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "config.yaml").write_text(CONFIG)
    (tmp_path / "data.csv").write_text(
        "namespace,date,daily_incoming_txs,daily_active_users\n"
        "dex,2024-01-01,500,10\n"
        "lending,2024-01-01,1200,4\n"
    )
    app_logger = logging.getLogger("src")
    handlers = list(app_logger.handlers)
    level = app_logger.level
    yield tmp_path
    app_logger.setLevel(level)
    for handler in app_logger.handlers[:]:
        if handler not in handlers:
            app_logger.removeHandler(handler)
            handler.close()


def test_main_prints_summary(workdir, capsys):
    assert main(["--config", "config.yaml"]) == 0
    out = capsys.readouterr().out
    assert "protocols=2" in out
    assert "high_concentration=1" in out


def test_main_exports_view(workdir):
    assert main(["--config", "config.yaml", "--export", "reports/view.json"]) == 0
    data = json.loads((workdir / "reports" / "view.json").read_text())
    assert data["kpi_tiles"]["total_protocols"]["value"] == 2


def test_main_failed_load_exit_code(workdir, capsys):
    assert main(["--config", "config.yaml", "--source", "missing.csv"]) == 1
    assert "Error (fetch)" in capsys.readouterr().err


def test_repeated_main_does_not_duplicate_handlers(workdir):
    app_logger = logging.getLogger("src")
    assert main(["--config", "config.yaml"]) == 0
    first = len(app_logger.handlers)
    assert main(["--config", "config.yaml"]) == 0
    assert len(app_logger.handlers) == first


def test_logging_is_configured_before_pipeline_starts(workdir):
    (workdir / "config.yaml").write_text(CONFIG.replace("level: WARNING", "level: INFO"))
    assert main(["--config", "config.yaml"]) == 0
    for handler in logging.getLogger("src").handlers:
        handler.flush()
    log_text = (workdir / "logs" / "test.log").read_text()
    assert "EngagementPipeline initialised" in log_text
