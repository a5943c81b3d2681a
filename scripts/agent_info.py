"""Print what the agent resolves for an application directory."""
from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
candidate_str = str(REPO_ROOT / "src")
if candidate_str not in sys.path:
    sys.path.insert(0, candidate_str)

from newrelic_agent.config import Configuration, detect_host_facts


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Show the resolved agent configuration")
    parser.add_argument("--root", type=str, default=None, help="Application root (defaults to cwd)")
    parser.add_argument("--env", type=str, default=None, help="Environment section to use")
    parser.add_argument("--identifier", type=str, default=None, help="Process identifier for the log file name")
    parser.add_argument("--no-log", action="store_true", help="Do not open the agent log file")
    return parser.parse_args()


def main() -> None:
    args = parse_args()

    facts = detect_host_facts()
    if args.root:
        facts = replace(facts, root_path=Path(args.root).expanduser())
    if args.env:
        facts = replace(facts, environment=args.env)

    config = Configuration.instance(facts)
    if not args.no_log:
        config.setup_log(args.identifier)

    print(f"{config} environment={config.environment_name} source={config.settings.source}")
    for label, value in config.gather_info():
        print(f"  {label}: {value}")
    print(f"  tracers enabled: {config.tracers_enabled()}")
    config.log.close()


if __name__ == "__main__":
    main()
