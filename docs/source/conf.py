# Configuration file for the Sphinx documentation builder.
#
# https://www.sphinx-doc.org/en/master/usage/configuration.html

import os
import sys

# Make torch_sigfilt importable without installation
sys.path.insert(0, os.path.abspath('../..'))

import torch_sigfilt  # noqa: E402

# -- Project information -----------------------------------------------------
project = 'torch_sigfilt'
copyright = '2026, torch_sigfilt contributors'
author = 'torch_sigfilt contributors'
release = torch_sigfilt.__version__
version = '.'.join(release.split('.')[:2])

# -- General configuration ---------------------------------------------------
extensions = [
    'sphinx.ext.autodoc',           # API reference from docstrings
    'sphinx.ext.napoleon',          # NumPy-style docstrings
    'sphinx.ext.viewcode',
    'sphinx.ext.intersphinx',
    'sphinx.ext.mathjax',           # Filter and wavelet equations
    'sphinx.ext.autosummary',
    'sphinx_autodoc_typehints',
    'myst_parser',                  # Markdown pages
]

napoleon_google_docstring = False
napoleon_numpy_docstring = True
napoleon_include_init_with_doc = True
napoleon_include_private_with_doc = False
napoleon_use_param = True
napoleon_use_rtype = True
napoleon_attr_annotations = True
# Module docstrings use a "Shape" section for tensor layouts
napoleon_custom_sections = [('Shape', 'params_style')]

autodoc_default_options = {
    'members': True,
    'member-order': 'bysource',
    'special-members': '__init__',
    'exclude-members': '__weakref__',
}
autodoc_typehints = 'description'
autodoc_typehints_description_target = 'documented'

autosummary_generate = True
autosummary_imported_members = False

templates_path = ['_templates']
exclude_patterns = []

source_suffix = {
    '.rst': 'restructuredtext',
    '.md': 'markdown',
}

master_doc = 'index'

# -- Options for HTML output -------------------------------------------------
html_theme = 'sphinx_rtd_theme'
html_theme_options = {
    'navigation_depth': 3,
    'collapse_navigation': False,
    'sticky_navigation': True,
    'prev_next_buttons_location': 'bottom',
    'style_external_links': True,
}
html_static_path = []
html_title = f'{project} v{release}'
html_short_title = project
html_show_sourcelink = True

# -- Options for LaTeX output ------------------------------------------------
latex_elements = {
    'papersize': 'a4paper',
    'pointsize': '10pt',
}
latex_documents = [
    (master_doc, 'torch_sigfilt.tex', 'torch\\_sigfilt Documentation', author, 'manual'),
]

# -- Extension configuration -------------------------------------------------
intersphinx_mapping = {
    'python': ('https://docs.python.org/3', None),
    'torch': ('https://pytorch.org/docs/stable/', None),
    'numpy': ('https://numpy.org/doc/stable/', None),
    'scipy': ('https://docs.scipy.org/doc/scipy/', None),
}

mathjax_path = 'https://cdn.jsdelivr.net/npm/mathjax@3/es5/tex-mml-chtml.js'

always_document_param_types = True
typehints_fully_qualified = False
