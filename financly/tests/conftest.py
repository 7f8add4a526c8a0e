"""
Test configuration for Financly tests.

The project root is put on sys.path so 'from financly...' resolves whether or
not the package was installed, and whichever directory pytest runs from.
"""
import sys
from pathlib import Path

_project_root = Path(__file__).parent.parent.parent   # .../financly/tests → project root

if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))
