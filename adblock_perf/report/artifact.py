"""Report artifact writer.

The report viewer is a standalone page that reads its data from
``window.reportResults``. This module serializes the result map into that
page, next to a plain JSON copy for other tooling.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Mapping

import orjson

from ..domain.models import ReportResult

logger = logging.getLogger(__name__)

_HTML_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>Ad-blocking performance report</title>
</head>
<body>
<div id="root"></div>
<script>window.reportResults = {payload};</script>
</body>
</html>
"""


def serialize_results(results: Mapping[str, ReportResult]) -> Dict[str, Any]:
    """Convert results to JSON-ready dicts using the camelCase field names."""
    return {
        name: result.model_dump(mode="json", by_alias=True)
        for name, result in results.items()
    }


def _script_safe(payload: bytes) -> str:
    # Keep "</script>" inside string values from closing the script element
    return payload.decode("utf-8").replace("</", "<\\/")


def write_report(
    results: Mapping[str, ReportResult], output_dir: Path, filename: str
) -> Path:
    """
    Write the HTML report and its JSON payload into ``output_dir``.

    Parameters
    ----------
    results : Mapping[str, ReportResult]
        Input file name -> statistics
    output_dir : Path
        Created if missing
    filename : str
        HTML file name; the JSON copy uses the same stem

    Returns
    -------
    Path
        Path of the HTML file
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    data = serialize_results(results)
    payload = orjson.dumps(data)

    html_path = output_dir / filename
    html_path.write_text(
        _HTML_TEMPLATE.format(payload=_script_safe(payload)), encoding="utf-8"
    )
    json_path = html_path.with_suffix(".json")
    json_path.write_bytes(orjson.dumps(data, option=orjson.OPT_INDENT_2))

    logger.info(
        "report.artifact_written",
        extra={"html_path": str(html_path), "json_path": str(json_path)},
    )
    return html_path
