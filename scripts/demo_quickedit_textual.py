#!/usr/bin/env python3
from __future__ import annotations

import json
from pathlib import Path

from quickedit_table.document import load_table_document
from quickedit_table.ui.session_textual import run_quickedit_session


def main() -> int:
    document = load_table_document(Path("fixtures/demo_table.json"))
    changes = run_quickedit_session(document)
    if changes is None:
        print("No changes saved.")
        return 0
    print(json.dumps(changes, indent=2, sort_keys=True, default=str))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
