from __future__ import annotations

from gh_label_sync.main import main

if __name__ == "__main__":
    raise SystemExit(main())
