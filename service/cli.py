# service/cli.py
"""
Command-line entrypoints for the crawler.

Subcommands
-----------
crawl SCOPE [SCOPE ...] [--kwargs k=v ...]
    - Full pipeline (listing -> classifications -> enrichment) per scope,
      one scope after another; writes <scope>_job_details.json

listing SCOPE [--kwargs k=v ...]
    - Phase one of two-phase mode: writes <scope>_jobs.json

enrich LISTING_JSON [--kwargs k=v ...]
    - Phase two: classify + enrich the items of a listing artifact

list-sites
    - Print registered site adapters and their filter dimensions

validate-config SCOPE [--kwargs k=v ...]
    - Build and validate Settings without touching the network

Exit codes: 0 ok, 1 failure, 2 configuration error, 130 interrupted.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import time
import uuid
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from modules.job_crawl.lib import engine as _engine
from modules.job_crawl.lib import sites as _sites
from modules.job_crawl.lib import store as _store
from modules.job_crawl.lib.config import ConfigError, Settings
from service import logging_utils as L

LOG = logging.getLogger("service.cli")


# ----------------------------- Logging setup ---------------------------------
def _ensure_logging() -> None:
    """Initialize a reasonable logging setup if none exists yet."""
    root = logging.getLogger()
    if not root.handlers:
        level = os.getenv("LOG_LEVEL", "INFO").upper()
        logging.basicConfig(
            level=getattr(logging, level, logging.INFO),
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )


# -------------------------- Utility / glue code ------------------------------
def _parse_kv_pairs(pairs: Iterable[str]) -> dict[str, Any]:
    """
    Parse key=value strings into a dict.
    - Values that look like JSON (true/false/null/number/object/array) are parsed.
    - Otherwise keep as raw strings.
    """
    out: dict[str, Any] = {}
    for raw in pairs:
        if "=" not in raw:
            raise argparse.ArgumentTypeError(f"--kwargs item must be key=value (got {raw!r})")
        k, v = raw.split("=", 1)
        k = k.strip()
        v = v.strip()
        if not k:
            raise argparse.ArgumentTypeError(f"Invalid key in --kwargs item {raw!r}")
        try:
            out[k] = json.loads(v)
        except ValueError:
            out[k] = v
    return out


def _load_config_file(path: str | None) -> dict[str, Any]:
    """Optional JSON object of Settings kwargs; --kwargs override it."""
    if not path:
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"config file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"config file is invalid JSON: {path}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config file must hold a JSON object: {path}")
    return data


def _settings_for(args: argparse.Namespace, scope: str | None) -> Settings:
    try:
        overrides = _parse_kv_pairs(args.kwargs or [])
    except argparse.ArgumentTypeError as e:
        raise ConfigError(str(e)) from e
    kwargs = {**_load_config_file(args.config), **overrides}
    if scope is not None:
        kwargs["scope"] = scope
    return Settings.from_env_and_kwargs(kwargs)


def _now_iso() -> str:
    return datetime.now().astimezone().isoformat()


def _print_summary(meta: dict[str, Any]) -> None:
    print(
        f"{meta['scope']}: {meta['enriched']} enriched / {meta['discovered']} discovered, "
        f"{meta['dropped']} dropped -> {meta.get('output_path') or '(not written)'}"
    )
    for dim, n in sorted(meta.get("unresolved_by_dimension", {}).items()):
        print(f"  unresolved {dim}: {n}")


# ------------------------------ Subcommands ----------------------------------
def cmd_crawl(args: argparse.Namespace) -> int:
    status = 0
    for scope in args.scopes:
        run_id = uuid.uuid4().hex
        start = time.monotonic()
        try:
            settings = _settings_for(args, scope)
            _doc, meta = _engine.run_once(settings)
        except KeyboardInterrupt:
            return 130
        except ConfigError as e:
            print(f"CONFIG ERROR: {e}", file=sys.stderr)
            return 2
        except Exception as e:
            LOG.exception("crawl failed for %s", scope)
            print(f"FAILURE [{scope}]: {e}", file=sys.stderr)
            L.write_error_log({
                "ts": _now_iso(),
                "where": "cli.crawl",
                "run_id": run_id,
                "scope": scope,
                "error": repr(e),
                "duration_ms": int((time.monotonic() - start) * 1000),
            })
            status = 1
            continue

        L.write_activity_log({
            "ts": _now_iso(),
            "event": "cli_crawl",
            "run_id": run_id,
            "scope": scope,
            "total_items": meta["enriched"],
            "dropped": meta["dropped"],
            "duration_ms": int((time.monotonic() - start) * 1000),
        })
        _print_summary(meta)
    return status


def cmd_listing(args: argparse.Namespace) -> int:
    try:
        settings = _settings_for(args, args.scope)
        path, items = _engine.run_listing(settings)
    except KeyboardInterrupt:
        return 130
    except ConfigError as e:
        print(f"CONFIG ERROR: {e}", file=sys.stderr)
        return 2
    except Exception as e:
        LOG.exception("listing failed for %s", args.scope)
        print(f"FAILURE: {e}", file=sys.stderr)
        return 1
    print(f"{settings.scope}: saved {len(items)} items to {path}")
    return 0


def cmd_enrich(args: argparse.Namespace) -> int:
    try:
        scope = args.scope
        if scope is None:
            scope, _ = _store.load_listing(args.listing)
        settings = _settings_for(args, scope)
        _doc, meta = _engine.run_enrichment(settings, args.listing)
    except KeyboardInterrupt:
        return 130
    except ConfigError as e:
        print(f"CONFIG ERROR: {e}", file=sys.stderr)
        return 2
    except Exception as e:
        LOG.exception("enrichment failed for %s", args.listing)
        print(f"FAILURE: {e}", file=sys.stderr)
        return 1
    _print_summary(meta)
    return 0


def cmd_list_sites(args: argparse.Namespace) -> int:
    kinds = _sites.all_kinds()
    if not kinds:
        print("No sites registered.")
        return 0
    for kind, cls in sorted(kinds.items()):
        site = cls()
        dims = ", ".join(f"{d.name} ({d.param}, {len(d.values)} values)" for d in site.default_dimensions())
        print(f"{kind}: continuation={site.continuation}; dimensions: {dims or '-'}")
    return 0


def cmd_validate_config(args: argparse.Namespace) -> int:
    try:
        settings = _settings_for(args, args.scope)
        site = _sites.get(settings.site)(continuation=settings.continuation)
        dims = settings.resolve_dimensions(site.default_dimensions())
    except ConfigError as e:
        print(f"ERROR: configuration invalid: {e}", file=sys.stderr)
        return 2
    print(f"OK: {settings.site} / {settings.scope}; dimensions: {', '.join(d.name for d in dims) or '-'}")
    return 0


# ------------------------------- Argparse ------------------------------------
def _add_kwargs(sp: argparse.ArgumentParser) -> None:
    sp.add_argument(
        "--kwargs",
        metavar="k=v",
        nargs="*",
        help="Settings overrides, e.g. detail_concurrency=4 termination=empty_page (JSON values supported).",
    )


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="python -m service.cli",
        description="Listing crawler: paginate, classify by filters, enrich details",
    )
    p.add_argument(
        "--config",
        help="Path to a JSON object of settings (kwargs on the command line win).",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    sp = sub.add_parser("crawl", help="Run the full pipeline for one or more scopes.")
    sp.add_argument("scopes", nargs="+", metavar="SCOPE", help="Scope(s) to crawl, e.g. Hamilton.")
    _add_kwargs(sp)
    sp.set_defaults(func=cmd_crawl)

    sp = sub.add_parser("listing", help="Crawl the listing only and save it (two-phase mode).")
    sp.add_argument("scope", metavar="SCOPE")
    _add_kwargs(sp)
    sp.set_defaults(func=cmd_listing)

    sp = sub.add_parser("enrich", help="Classify + enrich a saved listing (two-phase mode).")
    sp.add_argument("listing", metavar="LISTING_JSON")
    sp.add_argument("--scope", help="Override the scope stored in the listing file.")
    _add_kwargs(sp)
    sp.set_defaults(func=cmd_enrich)

    sp = sub.add_parser("list-sites", help="Print registered site adapters.")
    sp.set_defaults(func=cmd_list_sites)

    sp = sub.add_parser("validate-config", help="Verify settings without any network access.")
    sp.add_argument("scope", metavar="SCOPE")
    _add_kwargs(sp)
    sp.set_defaults(func=cmd_validate_config)

    return p


# --------------------------------- Main --------------------------------------
def main(argv: Iterable[str] | None = None) -> int:
    _ensure_logging()
    parser = _build_parser()
    args = parser.parse_args(args=list(argv) if argv is not None else None)
    return args.func(args)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
