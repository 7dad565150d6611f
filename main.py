"""
UVUnfold - UV parameterization for triangle meshes

Main entry point
"""

import sys
import os
import logging
from pathlib import Path

# Ensure repository root is on sys.path so "src" is importable.
ROOT_DIR = Path(__file__).resolve().parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from src.core.runtime_defaults import DEFAULTS
from src.core.output_paths import (
    uv_mesh_output_path,
    uv_svg_output_path,
    uv_png_output_path,
)

_LOGGER = logging.getLogger(__name__)
DEFAULT_EXPORT_DPI = DEFAULTS.export_dpi
DEFAULT_RENDER_RESOLUTION = DEFAULTS.render_resolution
DEFAULT_MESH_UNIT = "mm"
DEFAULT_COLOR_SEAMS = DEFAULTS.color_seams


def parse_seams(text: str) -> list[tuple[int, int]]:
    """'0:1,1:2' → [(0, 1), (1, 2)]"""
    seams: list[tuple[int, int]] = []
    for item in str(text or "").split(","):
        item = item.strip()
        if not item:
            continue
        a, sep, b = item.partition(":")
        if not sep:
            raise ValueError(f"Invalid seam edge '{item}' (expected a:b)")
        seams.append((int(a), int(b)))
    return seams


def _split_seam_options(argv: list[str]) -> tuple[list[str], list[tuple[int, int]], bool]:
    rest: list[str] = []
    seams: list[tuple[int, int]] = []
    color_seams = DEFAULT_COLOR_SEAMS
    for arg in argv:
        if arg.startswith("--seams="):
            seams.extend(parse_seams(arg[len("--seams="):]))
        elif arg == "--no-color-seams":
            color_seams = False
        else:
            rest.append(arg)
    return rest, seams, color_seams


def run_cli(argv: list[str] | None = None) -> int:
    """커맨드라인 인터페이스 실행"""
    try:
        from src.core.logging_utils import setup_logging

        setup_logging()
    except Exception as e:
        _LOGGER.debug("Failed to initialize logging: %s", e, exc_info=True)

    args = list(sys.argv[1:] if argv is None else argv)
    try:
        args, seams, color_seams = _split_seam_options(args)
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    if len(args) < 1:
        print_help()
        return 0

    cmd = args[0]

    if cmd == '--help' or cmd == '-h':
        print_help()
        return 0

    if cmd == '--info' and len(args) > 1:
        return show_file_info(args[1])

    if cmd == '--flatten' and len(args) > 1:
        return flatten_to_mesh(args[1], args[2] if len(args) > 2 else None,
                               seams=seams, color_seams=color_seams)

    if cmd == '--svg' and len(args) > 1:
        return flatten_to_svg(args[1], args[2] if len(args) > 2 else None,
                              seams=seams, color_seams=color_seams)

    if cmd == '--png' and len(args) > 1:
        return flatten_to_png(args[1], args[2] if len(args) > 2 else None,
                              seams=seams, color_seams=color_seams)

    # 기본: 파일 처리
    if os.path.exists(cmd):
        return process_mesh(cmd, seams=seams, color_seams=color_seams)

    print(f"Error: Unknown command or file not found: {cmd}")
    print("Use --help for usage information")
    return 1


def print_help():
    """도움말 출력"""
    from src.core.mesh_loader import MeshLoader

    print("=" * 60)
    print("UVUnfold - UV parameterization for triangle meshes")
    print("=" * 60)
    print()
    print("Usage:")
    print("  python main.py <mesh_file>                     # Flatten + OBJ/SVG/PNG")
    print("  python main.py --info <mesh_file>              # Show file info")
    print("  python main.py --flatten <mesh_file> [out.obj] # Mesh with UVs")
    print("  python main.py --svg <mesh_file> [out.svg]     # UV layout SVG")
    print("  python main.py --png <mesh_file> [out.png]     # UV layout preview")
    print()
    print("Options:")
    print("  --seams=a:b,c:d   Register seam edges (drawn in the SVG)")
    print("  --no-color-seams  Ignore red vertex-color seam marks")
    print()
    print(f"Supported formats: {list(MeshLoader.SUPPORTED_FORMATS.keys())}")
    print()
    print("Examples:")
    print("  python main.py patch.obj")
    print("  python main.py --svg patch.ply layout.svg --seams=0:1,1:2")


def show_file_info(filepath: str) -> int:
    """파일 정보 표시"""
    from src.core.mesh_loader import MeshLoader

    print(f"\nFile Info: {filepath}")
    print("-" * 40)

    try:
        loader = MeshLoader(default_unit=DEFAULT_MESH_UNIT)
        info = loader.get_file_info(filepath)
        for key, value in info.items():
            print(f"  {key}: {value}")
    except Exception as e:
        print(f"  Error: {e}")
        return 1
    return 0


def _load_and_flatten(filepath: str, seams: list[tuple[int, int]], color_seams: bool = False):
    from src.core.mesh_loader import MeshLoader
    from src.core.flattener import flatten_mesh

    loader = MeshLoader(default_unit=DEFAULT_MESH_UNIT)
    mesh = loader.load(filepath)
    print(f"  Loaded: {mesh.n_vertices:,} vertices, {mesh.n_faces:,} faces")

    flattened, registry = flatten_mesh(mesh, seams=seams, color_seams=color_seams)
    if color_seams and mesh.has_vertex_colors:
        print(f"  Seams: {len(registry)} edges (including vertex-color marks)")
    print(f"  Flattened: {flattened.width:.2f} x {flattened.height:.2f} {mesh.unit}")
    topo = flattened.topology
    if topo is not None:
        print(f"  Topology: {topo.kind} (euler={topo.euler}, {topo.boundary_loops} boundary loops)")
    print(f"  Distortion: {flattened.mean_distortion:.1%} (mean), {flattened.max_distortion:.1%} (max)")
    if flattened.n_components > 1:
        print(f"  Warning: {flattened.n_components} disconnected pieces, "
              f"{flattened.unplaced_vertices} vertices placed at origin")
    return flattened, registry


def _save_mesh(flattened, filepath: str, output_path: str | None) -> Path:
    from src.core.mesh_loader import MeshProcessor

    save_path = uv_mesh_output_path(filepath, output_path)
    MeshProcessor().save_mesh(flattened.original_mesh, save_path, uv=flattened.uv)
    print(f"  Saved: {save_path}")
    return save_path


def _save_svg(flattened, registry, filepath: str, output_path: str | None) -> Path:
    from src.core.flattened_svg_exporter import FlattenedSVGExporter

    save_path = uv_svg_output_path(filepath, output_path)
    FlattenedSVGExporter().export(flattened, save_path, seams=registry)
    print(f"  Saved: {save_path}")
    return save_path


def _save_png(flattened, filepath: str, output_path: str | None) -> Path:
    from src.core.uv_layout_renderer import UVLayoutRenderer

    save_path = uv_png_output_path(filepath, output_path)
    renderer = UVLayoutRenderer(default_dpi=DEFAULT_EXPORT_DPI)
    image = renderer.render(flattened, resolution=DEFAULT_RENDER_RESOLUTION)
    image.save(str(save_path))
    print(f"  Saved: {save_path}")
    return save_path


def process_mesh(filepath: str, seams: list[tuple[int, int]] | None = None,
                 color_seams: bool = False) -> int:
    """메쉬 전체 처리 (로드 → 펼침 → OBJ/SVG/PNG 저장)"""
    print(f"\n{'='*60}")
    print(f"Processing: {filepath}")
    print(f"{'='*60}")

    try:
        flattened, registry = _load_and_flatten(filepath, list(seams or []), color_seams)
        _save_mesh(flattened, filepath, None)
        _save_svg(flattened, registry, filepath, None)
        _save_png(flattened, filepath, None)
    except Exception as e:
        print(f"\nError: {e}")
        _LOGGER.exception("Processing failed: %s", filepath)
        return 1

    print("Done!")
    return 0


def flatten_to_mesh(filepath: str, output_path: str | None = None,
                    seams: list[tuple[int, int]] | None = None,
                   color_seams: bool = False) -> int:
    """UV가 포함된 메쉬 저장"""
    print(f"\nFlattening: {filepath}")
    print("-" * 40)
    try:
        flattened, _registry = _load_and_flatten(filepath, list(seams or []), color_seams)
        _save_mesh(flattened, filepath, output_path)
    except Exception as e:
        print(f"Error: {e}")
        _LOGGER.exception("Flatten failed: %s", filepath)
        return 1
    return 0


def flatten_to_svg(filepath: str, output_path: str | None = None,
                   seams: list[tuple[int, int]] | None = None,
                   color_seams: bool = False) -> int:
    """UV 레이아웃 SVG 저장"""
    print(f"\nExporting UV layout (SVG): {filepath}")
    print("-" * 40)
    try:
        flattened, registry = _load_and_flatten(filepath, list(seams or []), color_seams)
        _save_svg(flattened, registry, filepath, output_path)
    except Exception as e:
        print(f"Error: {e}")
        _LOGGER.exception("SVG export failed: %s", filepath)
        return 1
    return 0


def flatten_to_png(filepath: str, output_path: str | None = None,
                   seams: list[tuple[int, int]] | None = None,
                   color_seams: bool = False) -> int:
    """UV 레이아웃 미리보기 PNG 저장"""
    print(f"\nRendering UV layout (PNG): {filepath}")
    print("-" * 40)
    try:
        flattened, _registry = _load_and_flatten(filepath, list(seams or []), color_seams)
        _save_png(flattened, filepath, output_path)
    except Exception as e:
        print(f"Error: {e}")
        _LOGGER.exception("PNG export failed: %s", filepath)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(run_cli())
