"""Local deterministic agent for CLI assistant integration tests."""

from __future__ import annotations

import argparse
import json
import re
import sys
from pathlib import Path

_QUERY_RE = re.compile(r"^(?:Query|User question): (?P<query>.*)$", re.MULTILINE)
_CITATION_RE = re.compile(r"^(\[TASK_\d+\])", re.MULTILINE)


def main(argv: list[str] | None = None) -> int:
    """Answer an intent or analysis prompt without calling any model."""

    parser = argparse.ArgumentParser()
    parser.add_argument("--prompt-file", required=False)
    parser.add_argument("--prompt", required=False)
    parser.add_argument("--fail", default=None, help="Print this message to stderr and exit 1.")
    args, _ = parser.parse_known_args(argv)

    if args.fail:
        sys.stderr.write(f"{args.fail}\n")
        return 1
    if args.prompt_file:
        prompt = Path(args.prompt_file).read_text("utf-8")
    elif args.prompt is not None:
        prompt = args.prompt
    else:
        parser.error("Either --prompt-file or --prompt is required")

    match = _QUERY_RE.search(prompt)
    query = match.group("query").strip() if match else ""
    citations = _CITATION_RE.findall(prompt)

    if citations:
        picked = citations[:2]
        sys.stdout.write(f"<think>ranking {len(citations)} tasks</think>\n")
        sys.stdout.write(f"Start with {' then '.join(picked)}.\n")
        return 0

    payload = {
        "keywords": [word for word in re.findall(r"\w+", query.lower()) if len(word) > 2],
        "expansions": {},
        "isVague": False,
        "confidence": 0.5,
    }
    sys.stdout.write(json.dumps(payload, ensure_ascii=False))
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
