"""Sphinx configuration for Game Reviews API documentation."""

import os
import sys
from datetime import datetime

sys.path.insert(0, os.path.abspath(".."))

project = "Game Reviews API"
current_year = datetime.now().year
copyright = f"{current_year}, Game Reviews"
author = "Game Reviews Team"

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
]

autodoc_member_order = "bysource"

templates_path = ["_templates"]
exclude_patterns: list[str] = ["_build"]

html_theme = "alabaster"
