"""
Executive summary report for split tests.

Renders an AnalysisResult dict to artifacts/experiments/<id>/exec_summary.html.
"""

import logging
from pathlib import Path
from typing import Any, Dict

from jinja2 import Environment, select_autoescape

logger = logging.getLogger(__name__)

DEFAULT_ARTIFACTS_DIR = "artifacts/experiments"

_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>Split test {{ experiment_id }}</title>
  <style>
    body { font-family: sans-serif; margin: 32px; color: #222; }
    table { border-collapse: collapse; margin-top: 12px; }
    th, td { border: 1px solid #ccc; padding: 6px 10px; text-align: right; }
    th:first-child, td:first-child { text-align: left; }
    .apply { background: #d5f5e3; padding: 12px; border-radius: 6px; }
    .hold { background: #fdebd0; padding: 12px; border-radius: 6px; }
    .continue { background: #ebf5fb; padding: 12px; border-radius: 6px; }
  </style>
</head>
<body>
  <h1>Split test {{ experiment_id }}</h1>
  <p>Status: <strong>{{ r.status }}</strong> &middot; Primary metric: {{ r.primary_metric }}
     &middot; Impressions: {{ r.current_sample_size }} / {{ r.minimum_sample_size }}</p>

  <div class="{{ r.recommendation }}">
    <strong>Recommendation: {{ r.recommendation | upper }}</strong><br>
    {{ r.recommendation_reason }}
  </div>

  <h2>Variants</h2>
  <table>
    <tr>
      <th>Variant</th><th>Impressions</th><th>Clicks</th><th>Engagement</th><th>Conversions</th>
      <th>CTR %</th><th>Engagement %</th><th>Conversion %</th><th>Split</th><th>Served</th>
    </tr>
    {% for v in r.variant_stats %}
    <tr>
      <td>{{ v.name }}{% if v.variant_id == r.winner %} (winner){% endif %}</td>
      <td>{{ v.impressions }}</td><td>{{ v.clicks }}</td>
      <td>{{ v.engagement }}</td><td>{{ v.conversions }}</td>
      <td>{{ "%.2f" | format(v.ctr) }}</td>
      <td>{{ "%.2f" | format(v.engagement_rate) }}</td>
      <td>{{ "%.2f" | format(v.conversion_rate) }}</td>
      <td>{{ "%.0f%%" | format(v.expected_share * 100) }}</td>
      <td>{{ "%.1f%%" | format(v.observed_share * 100) }}</td>
    </tr>
    {% endfor %}
  </table>

  <h2>Significance</h2>
  {% if r.z_score is not none %}
  <p>Leader {{ r.leader }} vs runner-up {{ r.runner_up }}:
     improvement {{ "%.1f" | format(r.improvement) }}%,
     z = {{ "%.3f" | format(r.z_score) }}, p = {{ "%.4f" | format(r.p_value) }},
     confidence {{ "%.0f" | format(r.confidence * 100) }}%
     (required {{ "%.0f" | format(r.significance_level * 100) }}%).</p>
  {% else %}
  <p>Not enough data to compare the leading variants yet.</p>
  {% endif %}
  <p>Sample ratio check: {% if r.srm_passed %}passed{% else %}<strong>FAILED</strong>{% endif %}
     {% if r.srm_p_value is not none %}(p = {{ "%.4f" | format(r.srm_p_value) }}){% endif %}</p>
  <p><small>Generated {{ r.analysis_timestamp }}</small></p>
</body>
</html>
"""

_env = Environment(autoescape=select_autoescape(default=True, default_for_string=True))


def render_exec_summary(
    result: Dict[str, Any],
    experiment_id: str,
    artifacts_dir: str = DEFAULT_ARTIFACTS_DIR,
) -> Path:
    """
    Render the executive summary HTML.

    Args:
        result: AnalysisResult.to_dict() output
        experiment_id: Experiment identifier (names the output directory)
        artifacts_dir: Base artifacts directory

    Returns:
        Path to the written exec_summary.html
    """
    html = _env.from_string(_TEMPLATE).render(experiment_id=experiment_id, r=result)
    out_dir = Path(artifacts_dir) / experiment_id
    out_dir.mkdir(parents=True, exist_ok=True)
    out_path = out_dir / "exec_summary.html"
    out_path.write_text(html, encoding="utf-8")
    logger.info(f"Executive summary written to {out_path}")
    return out_path
