#!/usr/bin/env python3
"""Print the decoded content of a pyfiledb store file.

Usage
-----
::

    python scripts/dump_store.py state/app.json
    FILEDB_CRYPT_KEY="passphrase" python scripts/dump_store.py state/app.json

Options::

    --crypt-key KEY      Passphrase (default: $FILEDB_CRYPT_KEY)
    --compact            Print compact JSON instead of indented JSON
    --debug              Enable DEBUG logging

The file is opened read-only: no template is applied and nothing is
written, except that a plaintext file opened with a passphrase is
encrypted in place (the store's normal migration behaviour).
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from pyfiledb import FileDbError
from pyfiledb._codec import Codec
from pyfiledb._persistor import Persistor


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Dump a pyfiledb store file")
    parser.add_argument("path", type=Path, help="Store file")
    parser.add_argument("--crypt-key", default=os.environ.get("FILEDB_CRYPT_KEY"))
    parser.add_argument("--compact", action="store_true")
    parser.add_argument("--debug", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.path.exists():
        print(f"No such store file: {args.path}", file=sys.stderr)
        return 2

    persistor = Persistor(args.path, Codec(args.crypt_key))
    try:
        data = persistor.read()
    except FileDbError as exc:
        print(f"Cannot read store: {exc}", file=sys.stderr)
        return 1

    if args.compact:
        print(json.dumps(data, separators=(",", ":"), ensure_ascii=False))
    else:
        print(json.dumps(data, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
