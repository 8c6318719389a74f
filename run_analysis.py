"""
Site Analyzer - CLI Runner
Fetches one page, runs every registered check and writes a text report.

Usage:
    python run_analysis.py [site_url] [--output FILE] [--max-image-kb N]
"""

import argparse
import time

from site_config import AnalyzerConfig, load_config
from site_scanner import (
    CHECK_FUNCTIONS, SiteAnalysisError, SiteFetcher, log_error, log_info,
)
from site_report import generate_text_report, write_report


def run_checks(page, config: AnalyzerConfig) -> list:
    """Run every registered check in order and flatten the findings."""
    all_findings = []
    for name, fn in CHECK_FUNCTIONS.items():
        findings = fn(page, config)
        all_findings.extend(findings)
        icon = "X" if findings else "+"
        log_info(f"[{icon}] {name}: {len(findings)} issue(s)")
    return all_findings


def run_analysis(config: AnalyzerConfig):
    """
    Full run: fetch -> parse -> checks -> report file.
    Returns the findings, or None if the run failed (nothing is written then).
    """
    print("=" * 70)
    print("  SITE ANALYZER")
    print(f"  Site:   {config.site_url}")
    print(f"  Report: {config.report_file}")
    print("=" * 70)
    print()

    try:
        print("[1/3] Fetching page...")
        page = SiteFetcher(config).fetch_page(config.site_url)
        log_info(f"{page.status_code} - {page.url} ({len(page.lines)} lines)")
        print()

        print(f"[2/3] Running {len(CHECK_FUNCTIONS)} checks...")
        findings = run_checks(page, config)
        print()

        print(f"[3/3] Writing report ({len(findings)} issue(s))...")
        write_report(generate_text_report(findings), config.report_file)
    except SiteAnalysisError as e:
        log_error(f"Error analyzing site: {e}")
        return None
    except Exception as e:
        log_error(f"Error analyzing site: unexpected {type(e).__name__}: {e}")
        return None

    return findings


def main(argv=None):
    parser = argparse.ArgumentParser(description="Single-page site analyzer")
    parser.add_argument("site_url", nargs="?", default=None,
                        help="Page to analyze (default: SITE_URL from the environment, else the built-in site)")
    parser.add_argument("--output", default=None,
                        help="Report file path (default: site-analysis-report.txt)")
    parser.add_argument("--max-image-kb", type=int, default=None,
                        help="Flag images larger than this many KB (default: 100)")

    args = parser.parse_args(argv)
    config = load_config(
        site_url=args.site_url,
        report_file=args.output,
        max_image_size_kb=args.max_image_kb,
    )

    start_time = time.time()
    findings = run_analysis(config)
    elapsed = time.time() - start_time

    if findings is not None:
        print()
        print("=" * 70)
        print(f"  ANALYSIS COMPLETE in {elapsed:.1f}s - {len(findings)} issue(s) found")
        print("=" * 70)


if __name__ == "__main__":
    main()
