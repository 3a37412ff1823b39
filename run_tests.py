#!/usr/bin/env python
"""
Run the diskmat test suite with unittest discovery.

Usage:
    python run_tests.py            # every tests/test_*.py module
    python run_tests.py teardown   # only tests/test_teardown.py

Exits non-zero when any test fails, so it can gate CI.
"""

import os
import sys
import unittest


def main(argv):
    root = os.path.dirname(os.path.abspath(__file__))
    pattern = f"test_{argv[0]}.py" if argv else "test_*.py"

    suite = unittest.TestLoader().discover(os.path.join(root, 'tests'), pattern=pattern)
    result = unittest.TextTestRunner(verbosity=2, stream=sys.stdout).run(suite)

    print(f"\nRan {result.testsRun} tests: {len(result.failures)} failures, "
          f"{len(result.errors)} errors, {len(result.skipped)} skipped")
    return 0 if result.wasSuccessful() else 1


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
