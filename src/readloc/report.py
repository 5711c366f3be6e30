from __future__ import annotations

import datetime as _dt
import logging
from pathlib import Path
from typing import Any, Dict

from jinja2 import Template

logger = logging.getLogger(__name__)


_REPORT_TEMPLATE = Template(
    """<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>readloc Report</title>
  <style>
    body { font-family: Arial, Helvetica, sans-serif; margin: 24px; }
    code, pre { background: #f6f8fa; padding: 2px 4px; border-radius: 4px; }
    h1, h2, h3 { margin-top: 1.2em; }
    table { border-collapse: collapse; margin-top: 0.6em; }
    th, td { border: 1px solid #ddd; padding: 8px; }
    th { background: #f2f2f2; text-align: left; }
    .grid { display: grid; grid-template-columns: 1fr 1fr; gap: 16px; }
    .card { border: 1px solid #ddd; border-radius: 8px; padding: 12px; }
    .small { color: #666; font-size: 0.9em; }
    img { max-width: 100%; height: auto; border: 1px solid #eee; border-radius: 6px; }
  </style>
</head>
<body>

<h1>readloc Report</h1>
<p class="small">Generated: {{ generated_at }}</p>

<h2>Inputs</h2>
<table>
  <tr><th>Alignments</th><td><code>{{ alignments }}</code></td></tr>
  <tr><th>Annotation directory</th><td><code>{{ region_dir }}</code></td></tr>
  <tr><th>Strand-aware</th><td>{{ stranded }}</td></tr>
</table>

{% if per_file %}
<h3>Candidate rows per annotation file</h3>
<table>
  <tr><th>File</th><th>Rows</th></tr>
  {% for name, n in per_file.items() %}
  <tr><td><code>{{ name }}</code></td><td>{{ n }}</td></tr>
  {% endfor %}
</table>
{% endif %}

<h2>Resolution</h2>
<table>
  <tr><th>Candidate rows</th><td>{{ counts.candidates_total }}</td></tr>
  <tr><th>Distinct reads</th><td>{{ counts.reads_total }}</td></tr>
  <tr><th>Unambiguous reads</th><td>{{ counts.reads_unambiguous }}</td></tr>
  <tr><th>Ambiguous reads</th><td>{{ counts.reads_ambiguous }}</td></tr>
  <tr><th>Ambiguous reads decided by tie-break</th><td>{{ counts.ambiguous_ties }}</td></tr>
  <tr><th>Winners with zero coverage</th><td>{{ counts.zero_coverage_winners }}</td></tr>
  <tr><th>Rows written</th><td>{{ counts.rows_written }}</td></tr>
</table>

<h2>Plots</h2>
<div class="grid">
  <div class="card">
    <h3>Candidates per read</h3>
    <img src="{{ plots.candidates_per_read }}" alt="candidates per read">
  </div>
  <div class="card">
    <h3>Winning coverage fraction</h3>
    <img src="{{ plots.coverage_fraction_hist }}" alt="coverage fraction histogram">
  </div>
</div>

<h2>Outputs</h2>
<ul>
  <li><code>{{ output_bed }}</code> (one row per read)</li>
  <li><code>{{ summary_json }}</code> (machine-readable summary)</li>
</ul>

<hr>
<p class="small">readloc {{ version }}</p>
</body>
</html>"""
)


def render_report(
    *,
    out_html: str | Path,
    version: str,
    run: Dict[str, Any],
    plots: Dict[str, str],
) -> Path:
    out_html = Path(out_html)
    out_html.parent.mkdir(parents=True, exist_ok=True)

    html = _REPORT_TEMPLATE.render(
        generated_at=_dt.datetime.now().isoformat(timespec="seconds"),
        version=version,
        alignments=run.get("alignments"),
        region_dir=run.get("region_dir"),
        stranded=run.get("stranded"),
        per_file=run.get("candidates_per_file", {}),
        counts=run.get("counts", {}),
        output_bed=run.get("output_bed"),
        summary_json=run.get("summary_json"),
        plots=plots,
    )

    out_html.write_text(html, encoding="utf-8")
    return out_html
