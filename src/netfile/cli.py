from __future__ import annotations

import argparse
import json
import logging
import os
from pathlib import Path

from .client import Client
from .errors import Status, TransferError
from .server import Server
from .settings import LOG_LEVELS, ConfigError, load_settings

logger = logging.getLogger(__name__)


def cmd_serve(args: argparse.Namespace) -> int:
    server = Server.listening(
        args.host,
        args.port,
        Path(args.root),
        chunk_size=args.chunk_size,
        deadline=args.deadline,
        inbox_size=args.inbox_size,
    )
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("interrupted")
    finally:
        server.close()
    return 0


def cmd_get(args: argparse.Namespace) -> int:
    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    results = []
    failed = False

    try:
        client = Client.connect(
            args.host,
            args.port,
            chunk_size=args.chunk_size,
            deadline=args.deadline,
            inbox_size=args.inbox_size,
        )
    except OSError as exc:
        logger.error("cannot connect to %s:%s: %s", args.host, args.port, exc)
        results.append({"status": Status.NO_CONNECTION.label, "error": str(exc)})
        _print_results(results, args.json)
        return 1

    with client:
        for name in args.files:
            local_name = Path(name).name
            if local_name in ("", ".", ".."):
                logger.error("%s: no usable local file name", name)
                results.append({"file": name, "status": Status.FILE_IO.label, "error": "no usable local file name"})
                failed = True
                continue
            dest = out_dir / local_name
            entry = {"file": name, "out": str(dest)}
            try:
                out = open(dest, "wb")
            except OSError as exc:
                logger.error("%s: cannot open %s: %s", name, dest, exc)
                entry.update(status=Status.FILE_IO.label, error=str(exc))
                results.append(entry)
                failed = True
                continue
            try:
                with out:
                    r = client.get(name, out)
            except TransferError as exc:
                logger.error("%s: %s", name, exc)
                dest.unlink(missing_ok=True)
                entry.update(status=exc.status.label, error=exc.message)
                results.append(entry)
                failed = True
                if exc.status is not Status.NEGATIVE_RESPONSE:
                    # stream position is unknown; nothing more can be requested
                    break
                continue
            os.utime(dest, (r.timestamp, r.timestamp))
            entry.update(
                status=r.status.label,
                bytes=r.size,
                timestamp=r.timestamp,
                seconds=r.duration_s,
                mbps=r.throughput_mbps,
            )
            results.append(entry)
        else:
            client.quit()

    _print_results(results, args.json)
    return 1 if failed else 0


def _print_results(results: list, as_json: bool) -> None:
    payload = {"role": "client", "results": results}
    print(json.dumps(payload, indent=2) if as_json else payload)


def build_parser() -> argparse.ArgumentParser:
    settings = load_settings()
    p = argparse.ArgumentParser(prog="netfile", description="GET-style file transfer over TCP.")
    p.add_argument("--log-level", default=settings.log_level, choices=list(LOG_LEVELS))
    sub = p.add_subparsers(dest="cmd", required=True)

    def add_common(x: argparse.ArgumentParser) -> None:
        x.add_argument("--host", default=settings.host)
        x.add_argument("--port", type=int, default=settings.port)
        x.add_argument("--chunk-size", type=int, default=settings.chunk_size)
        x.add_argument("--deadline", type=float, default=settings.deadline, help="read deadline in seconds, 0 disables")
        x.add_argument("--inbox-size", type=int, default=settings.inbox_size)

    serve = sub.add_parser("serve", help="serve files from a directory")
    add_common(serve)
    serve.add_argument("--root", default=str(settings.root_dir))
    serve.set_defaults(func=cmd_serve)

    get = sub.add_parser("get", help="fetch one or more files over a single connection")
    add_common(get)
    get.add_argument("--out-dir", default=".")
    get.add_argument("--json", action="store_true")
    get.add_argument("files", nargs="+")
    get.set_defaults(func=cmd_get)

    return p


def main(argv: list[str] | None = None) -> int:
    try:
        p = build_parser()
    except ConfigError as exc:
        raise SystemExit(f"netfile: {exc}")
    args = p.parse_args(argv)
    if args.deadline < 0:
        p.error("--deadline must be >= 0")
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(asctime)s [%(levelname)s] %(message)s")
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
