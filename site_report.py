"""
Site Analyzer - Report Generator
Renders findings as a numbered plain-text report and writes it to disk.
"""

from site_scanner import ReportWriteError, log_success

REPORT_HEADER = "🔍 Site Analysis Report"

# Optional fields, printed in this order when set
_OPTIONAL_FIELDS = [
    ("Resource", "resource"),
    ("Hierarchy", "hierarchy"),
    ("Size", "size"),
    ("Contrast", "contrast_ratio"),
]


def generate_text_report(findings) -> str:
    """Render all findings as one text blob. Same findings in, same text out."""
    lines = [REPORT_HEADER, ""]
    for number, f in enumerate(findings, start=1):
        lines.append(f"📌 Issue {number}:")
        lines.append(f"   - Category: {f.category}")
        lines.append(f"   - Issue: {f.issue}")
        lines.append(f"   - Solution: {f.solution}")
        lines.append(f"   - Location: {f.location}")
        for label, attr in _OPTIONAL_FIELDS:
            value = getattr(f, attr)
            if value:
                lines.append(f"   - {label}: {value}")
        lines.append("")
    return "\n".join(lines) + "\n"


def write_report(text: str, path: str):
    """Overwrite path with the report. Partial writes are not cleaned up."""
    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
    except OSError as e:
        raise ReportWriteError(f"Could not write report to {path}: {e}") from e
    log_success(f"Report saved to {path}")
