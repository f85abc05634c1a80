"""
Pytest configuration for the songpt test suite.

This module configures the Python path so test files can import
``src.songpt`` without the project being installed.
"""
import sys
from pathlib import Path

# Add project root to Python path so tests can import from src
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))
