import os
import sys

# Ensure repository root is on sys.path so local packages can be imported when tests run
repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if repo_root not in sys.path:
    sys.path.insert(0, repo_root)

# Run Qt in offscreen mode to avoid needing a display
os.environ.setdefault('QT_QPA_PLATFORM', 'offscreen')
