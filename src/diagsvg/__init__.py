"""SVG rendering backend for vector diagram scene trees.

A scene tree of paths, text and images, decorated with styles,
transforms and annotations, is compiled into a self-contained
SVG 1.1 document. Gradients and clip paths are emitted as
referenced definitions with ids that are unique within the document.

See :func:`diagsvg.backend.render_dia` for the main entry point.
"""

import importlib.metadata

__version__ = importlib.metadata.version('diagsvg')
