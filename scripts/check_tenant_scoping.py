#!/usr/bin/env python
"""
Tenant scoping lint check.

Fails when request-serving code under src/mercato imports the maintenance
package or builds a search_path statement outside the identifier module.

USAGE:
    python scripts/check_tenant_scoping.py

EXIT CODES:
    0 - No violations
    1 - Violations found
"""

import argparse
import sys
from pathlib import Path

from mercato_maintenance.scoping_lint import find_violations


PACKAGE_ROOT = Path(__file__).parent.parent / "src" / "mercato"


def main() -> int:
    parser = argparse.ArgumentParser(description="Check tenant scoping rules")
    parser.add_argument(
        "--root",
        type=Path,
        default=PACKAGE_ROOT,
        help="Directory of the mercato package",
    )
    args = parser.parse_args()

    violations = find_violations(args.root)
    for violation in violations:
        print(violation)

    if violations:
        print(f"\n{len(violations)} tenant scoping violation(s)")
        return 1

    print("No tenant scoping violations")
    return 0


if __name__ == "__main__":
    sys.exit(main())
