#!/usr/bin/env python3

# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import sys
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from remote_identity.adapters.memory import EnvironmentCapabilities, InMemorySessionStore
from remote_identity.adapters.sqlalchemy.unit_of_work import startup
from remote_identity.app import build_provider, handle_request
from remote_identity.common.logging import configure_logging, level_for_verbosity
from remote_identity.config import ConfigurationError, get_provider_config
from remote_identity.domain.errors import CreationForbidden, IdentityStoreFailure
from remote_identity.domain.model import RequestContext

if TYPE_CHECKING:
    from collections.abc import Sequence

EXIT_NO_DECISION = 3


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Show how a remote user name would be reconciled into a session"
    )
    parser.add_argument(
        "--env",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Request variable, e.g. REMOTE_USER=jdoe (repeatable)",
    )
    parser.add_argument(
        "--name",
        help="Use this remote user name as the REMOTE_USER request variable",
    )
    parser.add_argument(
        "--database-uri",
        help="Identity store URI (default: DATABASE_URI or the local data directory)",
    )
    parser.add_argument(
        "--provision",
        action="store_true",
        help="Create the local identity if it does not exist yet",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Also log selections (-v) and profile writes (-vv)",
    )
    return parser.parse_args(list(argv))


def _parse_environ(pairs: Sequence[str], name: str | None) -> dict[str, str]:
    environ: dict[str, str] = {}
    for pair in pairs:
        key, separator, value = pair.partition("=")
        if not separator or not key:
            raise ValueError(f"Expected NAME=VALUE, got {pair!r}")
        environ[key] = value
    if name is not None:
        environ["REMOTE_USER"] = name
    return environ


def main(argv: Sequence[str] | None = None) -> None:
    """Resolve the given request variables and print the decision as JSON."""
    try:
        args = _parse_args(argv if argv is not None else sys.argv[1:])
        environ = _parse_environ(args.env, args.name)
        config = get_provider_config()
    except (ValueError, ConfigurationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)

    configure_logging(level=level_for_verbosity(args.verbose), force=True)

    try:
        startup(database_uri=args.database_uri, force=True)
        sessions = InMemorySessionStore()
        provider = build_provider(
            config=config,
            fallback=sessions,
            capabilities=EnvironmentCapabilities(),
        )
        outcome = handle_request(
            provider,
            RequestContext(environ=environ),
            provision=args.provision,
            refusals=sessions,
        )
    except IdentityStoreFailure as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    except CreationForbidden as exc:
        print(f"Not provisioned: {exc}", file=sys.stderr)
        sys.exit(EXIT_NO_DECISION)

    if outcome is None:
        print("No usable remote user name; other session providers decide.", file=sys.stderr)
        sys.exit(EXIT_NO_DECISION)

    identity = outcome.state.identity
    report = {
        "session_id": outcome.state.session_id,
        "priority": outcome.state.priority,
        "force_use": outcome.state.force_use,
        "identity": identity.canonical_name if identity else None,
        "exists": identity.exists if identity else False,
        "created": outcome.created.name if outcome.created else None,
        "metadata": dict(outcome.metadata),
        "suppressed_pages": sorted(outcome.selection.suppression.pages),
    }
    print(json.dumps(report, indent=2, default=str))


def cli() -> None:
    """Console script entry point."""
    load_dotenv()
    main()


if __name__ == "__main__":
    cli()
