"""
POD_Libs - Print-on-demand design studio core

This package contains the raster processing and compositing core of the
POD Studio editor, organized into specialized sub-packages:

- ImageEditingLib: Color utilities, segmentation, filters, masks, patterns,
  print pre-flight and export sizing
- LayersLib: Text/image layer models, asset cache and layer rendering
- SessionLib: Editor state, undo history, render pipeline and scheduling
- ServicesLib: Generation provider chain and configuration store
"""

__version__ = "0.1.0"
