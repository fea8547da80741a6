"""
Export of generated worlds to JSON and PNG files.
"""

from .json_export import export_json
from .images import RasterShapeError, export_images

__all__ = ['export_json', 'export_images', 'RasterShapeError']
