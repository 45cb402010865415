# SPDX-License-Identifier: Apache-2.0
from globeview.cli import main

if __name__ == "__main__":  # pragma: no cover - exercised in CLI tests
    raise SystemExit(main())
