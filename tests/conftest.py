# tests/conftest.py

import sys
from pathlib import Path

# Add the project root to sys.path so `import mailtext` works without installing
ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))
