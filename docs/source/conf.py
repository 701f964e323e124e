"""Sphinx configuration for Vulnerability Allocation documentation."""

import os
import sys

sys.path.insert(0, os.path.abspath("../.."))

project = "Vulnerability Allocation"
author = "eisenhauerIO"
copyright = "eisenhauerIO, MIT License"

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
    "sphinx.ext.mathjax",
    "myst_parser",
]

source_suffix = {
    ".rst": "restructuredtext",
    ".md": "markdown",
}
exclude_patterns = ["build"]

autodoc_member_order = "bysource"
autodoc_default_options = {"members": True, "undoc-members": False}
napoleon_numpy_docstring = True
napoleon_google_docstring = False

html_theme = "sphinx_rtd_theme"
html_theme_options = {
    "navigation_depth": 3,
}
html_context = {
    "display_github": True,
    "github_user": "eisenhauerIO",
    "github_repo": "tools-vulnerability-allocation",
    "github_version": "main",
    "conf_py_path": "/docs/source/",
}
