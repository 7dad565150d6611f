"""
Core processing modules for UVUnfold
"""

from .mesh_loader import MeshLoader, MeshData, MeshProcessor
from .halfedge import HalfEdge, HalfEdgeMesh, NO_TWIN, TopologyInfo
from .unfolder import flatten_piece, UnfoldResult
from .smoothing import optimize_conformal
from .normalization import normalize_uv
from .seams import SeamRegistry
from .seam_extractor import seams_from_vertex_colors
from .flattener import UVFlattener, FlattenedMesh, flatten_mesh
from .flattened_svg_exporter import FlattenedSVGExporter, SVGExportOptions
from .uv_layout_renderer import UVLayoutRenderer, UVLayoutImage

__all__ = [
    # Mesh loading
    'MeshLoader',
    'MeshData',
    'MeshProcessor',
    # Topology
    'HalfEdge',
    'HalfEdgeMesh',
    'NO_TWIN',
    'TopologyInfo',
    # Flattening pipeline
    'flatten_piece',
    'UnfoldResult',
    'optimize_conformal',
    'normalize_uv',
    'SeamRegistry',
    'seams_from_vertex_colors',
    # Session
    'UVFlattener',
    'FlattenedMesh',
    'flatten_mesh',
    # Exports
    'FlattenedSVGExporter',
    'SVGExportOptions',
    'UVLayoutRenderer',
    'UVLayoutImage',
]
