from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

from windsurf_forecast.domain.canonical import ForecastReport
from windsurf_forecast.domain.errors import ReportWriteError


def report_filename(days_ahead: int, start: datetime) -> str:
    return f"weather_data_{days_ahead}d_{start.strftime('%y%m%d')}.json"


def render_report(report: ForecastReport) -> str:
    return json.dumps(report.to_dict(), indent=2, ensure_ascii=False)


def write_report(report: ForecastReport, path: Path) -> Path:
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(render_report(report), encoding="utf-8")
    except OSError as exc:
        raise ReportWriteError(path, str(exc)) from exc
    return path
