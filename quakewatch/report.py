"""Bay Area earthquake activity report generator.

Produces a Markdown report from a ``historical_summary`` result plus the
magnitude histogram and activity time series:
- Overview (date range, totals, biggest quake)
- Regional statistics
- Magnitude distribution
- Recent swarms
- Methodology (swarm thresholds)

Usage::

    from quakewatch.report import generate_report
    text = generate_report(summary, histogram, params)
"""

from datetime import datetime, timezone

from quakewatch.classify import magnitude_label
from quakewatch.formatting import (
    fmt,
    fmt_mag,
    fmt_num,
    fmt_pct,
    fmt_time,
    format_radius,
)
from quakewatch.models import SwarmParams
from quakewatch.regions import region_name


def md_table(headers, rows, alignments=None):
    """Markdown table; ``alignments`` holds 'l', 'r' or 'c' per column."""
    if not rows:
        return ""
    if alignments is None:
        alignments = ["l"] * len(headers)
    seps = {"r": "---:", "c": ":---:"}
    lines = [
        "| " + " | ".join(headers) + " |",
        "| " + " | ".join(seps.get(a, "---") for a in alignments) + " |",
    ]
    for row in rows:
        cells = [str(c) for c in row][:len(headers)]
        cells += [""] * (len(headers) - len(cells))
        lines.append("| " + " | ".join(cells) + " |")
    return "\n".join(lines)


def generate_report(summary, histogram=None, params=None, generated_at=None):
    """Generate the full Markdown report."""
    params = params or SwarmParams()
    generated_at = generated_at or datetime.now(timezone.utc)

    lines = []
    lines.append("# Bay Area Earthquake Activity")
    lines.append("")
    lines.append(f"*Generated: {generated_at.strftime('%Y-%m-%d %H:%M UTC')}*")
    lines.append("")

    lines.extend(generate_overview(summary))
    lines.append("")
    lines.extend(generate_region_section(summary))
    lines.append("")
    if histogram:
        lines.extend(generate_magnitude_section(histogram))
        lines.append("")
    lines.extend(generate_swarm_section(summary))
    lines.append("")
    lines.extend(generate_methodology(params))

    return "\n".join(lines).rstrip() + "\n"


def generate_overview(summary):
    lines = ["## Overview", ""]
    if not summary["total_count"]:
        lines.append("No earthquakes in the selected data.")
        return lines

    dr = summary["date_range"]
    mr = summary["magnitude_range"]
    lines.append(
        f"**{fmt_num(summary['total_count'])}** earthquakes between "
        f"{fmt_time(dr['start'])} and {fmt_time(dr['end'])}, "
        f"magnitudes {fmt_mag(mr['min'])} to {fmt_mag(mr['max'])} "
        f"(mean {fmt(mr['avg'], 2)})."
    )
    big = summary["biggest_quake"]
    if big:
        lines.append("")
        lines.append(
            f"Largest event: **{fmt_mag(big['magnitude'])}** ({magnitude_label(big['magnitude'])}) "
            f"{big['place']}, {fmt_time(big['timestamp'])}."
        )
    lines.append("")
    lines.append(f"Swarms detected: **{summary['swarm_count']}**.")
    if summary.get("skipped"):
        lines.append(f"Records skipped as malformed: {summary['skipped']}.")
    return lines


def generate_region_section(summary):
    lines = ["## Regions", ""]
    rows = []
    for rs in summary["region_stats"]:
        rows.append([
            region_name(rs.region_id),
            fmt_num(rs.total_count),
            fmt(rs.avg_magnitude, 2),
            fmt(rs.max_magnitude, 1),
            fmt(rs.avg_depth, 1),
            rs.swarm_count,
            fmt(rs.earthquakes_per_year, 1),
            fmt_time(rs.last_activity),
        ])
    table = md_table(
        ["Region", "Events", "Mean M", "Max M", "Mean depth (km)", "Swarms", "Per year", "Last activity"],
        rows,
        ["l", "r", "r", "r", "r", "r", "r", "l"],
    )
    lines.append(table or "No regional data.")
    return lines


def generate_magnitude_section(histogram):
    lines = ["## Magnitude Distribution", ""]
    rows = [[b.range, fmt_num(b.count), fmt_pct(b.percentage)] for b in histogram]
    lines.append(md_table(["Magnitude", "Count", "Share"], rows, ["l", "r", "r"]))
    return lines


def generate_swarm_section(summary, limit=10):
    lines = ["## Recent Swarms", ""]
    swarms = summary["swarms"][:limit]
    if not swarms:
        lines.append("No swarms detected.")
        return lines
    rows = []
    for s in swarms:
        rows.append([
            fmt_time(s["start_time"]),
            fmt_time(s["end_time"]),
            region_name(s["region"]),
            s["total_count"],
            fmt_mag(s["peak_magnitude"]),
            s["intensity"],
        ])
    lines.append(md_table(
        ["Start", "End", "Region", "Events", "Peak", "Intensity"],
        rows,
        ["l", "l", "l", "r", "r", "l"],
    ))
    return lines


def generate_methodology(params):
    return [
        "## Methodology",
        "",
        "Swarms are found with a single chronological pass: an event joins the current "
        f"cluster if it occurs within {fmt(params.time_window_hours, 0)} hours of the "
        f"cluster's latest event and within {format_radius(params.distance_threshold_km)} "
        "of the cluster's centroid. Clusters of at least "
        f"{params.min_cluster_size} events are reported as swarms.",
        "",
        "Energy is estimated as 10^(1.5 M + 4.8) joules per event.",
    ]
