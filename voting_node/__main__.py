# voting_node/__main__.py
"""
Entry point for running the voting node as a module:
    python -m voting_node serve [--host 127.0.0.1] [--port 8000] [--config voting_config.yaml]
    python -m voting_node sweep [--config voting_config.yaml]

`sweep` finalizes every expired proposal in the configured store once and
prints the finalized ids; useful from cron when the in-process sweep is off.
"""

from __future__ import annotations

import argparse
import sys

from .config import configure_logging, load_config


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        prog="voting-node",
        description="Voting proposal lifecycle node",
    )
    p.add_argument("--config", default=None, help="Path to voting_config.yaml")
    sub = p.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None, help="Bind address (default from config)")
    serve.add_argument("--port", type=int, default=None, help="Port (default from config)")

    sub.add_parser("sweep", help="Finalize expired proposals once and exit")
    return p.parse_args(argv)


def run_sweep(config_path=None) -> int:
    from .storage import open_store
    from .voting_runtime.service import ProposalService

    cfg = load_config(config_path)
    configure_logging(cfg)
    store = open_store(cfg)
    try:
        done = ProposalService(store, cfg).sweep_expired()
    finally:
        store.close()
    for pid in done:
        print(pid)
    return 0


def main(argv=None) -> int:
    args = parse_args(argv)
    if args.command == "sweep":
        return run_sweep(args.config)

    from .main import main as serve_main

    serve_main(config_path=args.config, host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
