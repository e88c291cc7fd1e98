# docs/source/conf.py

# --- Make the package importable for autodoc ---------------------------------
import os, sys
sys.path.insert(0, os.path.abspath('../../src'))

# --- Project information ------------------------------------------------------
project = 'Admissions Merit List'
release = '0.1.0'
language = 'en'

# --- General configuration ----------------------------------------------------
extensions = [
    'sphinx.ext.autodoc',
    'sphinx.ext.napoleon',
]

autodoc_default_options = {
    'members': True,
}

templates_path = ['_templates']
exclude_patterns = []

autodoc_mock_imports = ['psycopg', 'openpyxl']

# --- HTML output --------------------------------------------------------------
html_theme = 'sphinx_rtd_theme'
