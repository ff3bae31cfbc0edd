#!/usr/bin/env python3
"""
CLI tool for extracting an article from a URL
"""

import argparse
import asyncio
import json
import sys

from utils.logging_config import setup_logging

from .errors import InvalidURLError
from .models import ProgressStage
from .web_extractor import ArticleExtractor


def _print_progress(stage: ProgressStage, fraction: float):
    print(f"🔄 {stage.value}... {fraction:.0%}", file=sys.stderr)


def main(argv=None):
    parser = argparse.ArgumentParser(description='Extract a readable article from a web page')
    parser.add_argument('url', help='Article URL (http or https)')
    parser.add_argument('--title', help='Title override')
    parser.add_argument('--tags', help='Comma-separated tags to add')
    parser.add_argument('--probe', action='store_true', help='Run a quick accessibility probe first')
    parser.add_argument('--quiet', action='store_true', help='Do not print progress')
    parser.add_argument('--log-level', default=None, help='Logging level (default: LOG_LEVEL)')

    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    extractor = ArticleExtractor()
    try:
        record = asyncio.run(extractor.extract(
            args.url,
            title_override=args.title,
            tags=args.tags,
            progress_callback=None if args.quiet else _print_progress,
            probe=args.probe,
        ))
    except InvalidURLError as e:
        print(f"❌ Invalid URL: {e}", file=sys.stderr)
        return 2

    print(json.dumps(record.to_dict(), ensure_ascii=False, indent=2))
    if record.degraded:
        print("⚠️ Extraction degraded: placeholder content returned", file=sys.stderr)
    return 0


if __name__ == '__main__':
    sys.exit(main())
