from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, List, Optional

from .accessor import MISSING
from .config import get_settings
from .errors import DataStoreError
from .logging_setup import setup_logging
from .store import Store, dumps

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="datastore", description="Read and write a JSON data store")
    parser.add_argument("name", help="Store name; the file is <base>/<name>.json")
    parser.add_argument("--path", default=None, help="Explicit store file (overrides --base)")
    parser.add_argument("--base", default=None, help="Directory for store files, relative to the home directory")
    parser.add_argument("--namespace", default=None, help="Scope every key under this top-level property")
    parser.add_argument("--indent", type=int, default=None, help="JSON indent used when writing")

    sub = parser.add_subparsers(dest="command", required=True)

    p_get = sub.add_parser("get", help="Print the value at KEY (the whole store when omitted)")
    p_get.add_argument("key", nargs="?", default=None)

    p_set = sub.add_parser("set", help="Set KEY to VALUE (parsed as JSON when possible)")
    p_set.add_argument("key")
    p_set.add_argument("value")

    p_union = sub.add_parser("union", help="Add unique VALUEs to the list at KEY")
    p_union.add_argument("key")
    p_union.add_argument("values", nargs="+")

    p_has = sub.add_parser("has", help="Exit 0 if KEY has a value, 1 otherwise")
    p_has.add_argument("key")

    p_del = sub.add_parser("del", help="Delete one or more keys")
    p_del.add_argument("keys", nargs="+")

    sub.add_parser("clear", help="Empty the store")
    sub.add_parser("json", help="Print the whole store as JSON")
    sub.add_parser("path", help="Print the store file path")
    sub.add_parser("unlink", help="Delete the store file")
    return parser.parse_args(argv)


def parse_value(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def run(args: argparse.Namespace) -> int:
    # the CLI writes synchronously so each invocation leaves the file current
    store = Store(
        args.name,
        path=args.path,
        base=args.base,
        namespace=args.namespace,
        indent=args.indent,
        debounce=0,
    )
    command = args.command

    if command == "get":
        value = store.get(args.key, MISSING)
        if value is MISSING:
            logger.info("No value at %s", args.key)
            return 1
        print(dumps(value, store.indent))
    elif command == "set":
        store.set(args.key, parse_value(args.value))
    elif command == "union":
        store.union(args.key, *[parse_value(v) for v in args.values])
    elif command == "has":
        return 0 if store.has(args.key) else 1
    elif command == "del":
        if not store.delete(*args.keys):
            logger.info("Nothing to delete for %s", ", ".join(args.keys))
    elif command == "clear":
        store.clear()
    elif command == "json":
        print(store.json())
    elif command == "path":
        print(store.path)
    elif command == "unlink":
        store.unlink()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    setup_logging(settings.log_dir, settings.log_level)

    try:
        return run(args)
    except DataStoreError as e:
        logger.error("%s", e)
        return 2
    except PermissionError as e:
        logger.error("Cannot read store: %s", e)
        return 2


if __name__ == "__main__":
    sys.exit(main())
