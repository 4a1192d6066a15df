"""Command-line entry point: serve the HTTP API or print one snapshot."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys

from fundhub_indexer.config import get_settings
from fundhub_indexer.errors import IndexerError
from fundhub_indexer.logger import configure_logging
from fundhub_indexer.rpc import RPCClient
from fundhub_indexer.snapshot import SnapshotBuilder

KINDS = ("projects", "daos", "proposals", "vaults")


async def build_once(kind: str | None, verbose: bool) -> int:
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    async with RPCClient(settings.RPC_ENDPOINT, timeout=settings.RPC_TIMEOUT_SECONDS) as rpc:
        builder = SnapshotBuilder(rpc, settings.program_ids, kind_specs=settings.kind_specs)
        snapshot = await builder.build()

    out = snapshot.to_dict()
    if kind is not None:
        out = {kind: out[kind], "metrics": out["metrics"]}

    # stdout: machine-readable only
    print(json.dumps(out, indent=2))

    # stderr: diagnostics
    if verbose:
        stats = builder.last_stats
        for name in KINDS:
            print(
                f"- {name}: fetched={stats.fetched.get(name, 0)} skipped={stats.skipped.get(name, 0)}"
                f" foreign={stats.foreign.get(name, 0)}",
                file=sys.stderr,
            )
    return 0


def serve(host: str, port: int) -> int:
    import uvicorn

    from fundhub_indexer.server import create_app

    uvicorn.run(create_app(), host=host, port=port)
    return 0


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(prog="fundhub-indexer")
    sub = ap.add_subparsers(dest="command", required=True)

    sp = sub.add_parser("serve", help="run the HTTP query service")
    sp.add_argument("--host", default="0.0.0.0")
    sp.add_argument("--port", type=int, default=8787)

    sn = sub.add_parser("snapshot", help="build one snapshot and print it as JSON")
    sn.add_argument("--kind", choices=KINDS, help="print only this account kind")
    sn.add_argument("--verbose", action="store_true", help="print fetch, skip and foreign-discriminator counts to stderr")

    args = ap.parse_args(argv)
    try:
        if args.command == "serve":
            return serve(args.host, args.port)
        return asyncio.run(build_once(args.kind, args.verbose))
    except IndexerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
