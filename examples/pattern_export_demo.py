"""
Pattern and print export demonstration.

Builds a small motif in memory, runs it through an editing session
(background removal, a filter pass and a text layer), then writes the
design and all three repeat patterns at print resolution.

Run from the repository root:
    python examples/pattern_export_demo.py [output_dir]
"""

import sys
import time
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from PIL import Image, ImageDraw

from POD_Libs.ImageEditingLib import FilterSettings, PatternSpec, PatternType
from POD_Libs.ImageEditingLib.export import export_pattern, get_preset, save_image
from POD_Libs.SessionLib import EditorSession


def build_motif(size=400):
    """White square with a red disc, like a typical generated spot graphic."""
    motif = Image.new("RGBA", (size, size), (255, 255, 255, 255))
    draw = ImageDraw.Draw(motif)
    margin = size // 5
    draw.ellipse((margin, margin, size - margin, size - margin), fill=(220, 40, 60, 255))
    return motif


def main(output_dir):
    output_dir = Path(output_dir)
    print("=" * 60)
    print("Editing session")
    print("=" * 60)

    with EditorSession(build_motif()) as session:
        print(f"Detected background: {session.state.remove_colors}")
        session.update_state(filters=FilterSettings(vintage=40, halftone=4))
        session.add_text_layer("POD", size=60, y=50, curvature=40)

        report = session.preflight("#18181b")
        print(f"Pre-flight passed: {report.passed}")
        for issue in report.issues:
            print(f"  - {issue}")

        design = session.render().image
        path = save_image(session.export(preset_name="pocket"), output_dir / "design_pocket.png")
        print(f"Saved {path}")

    print()
    print("=" * 60)
    print("Pattern export")
    print("=" * 60)
    preset = get_preset("allover")
    for pattern_type in PatternType:
        spec = PatternSpec(pattern_type, density=15, rotation=20)
        start = time.time()
        pattern = export_pattern(design, spec, preset)
        elapsed = time.time() - start
        path = save_image(pattern, output_dir / f"pattern_{pattern_type.value}.png")
        print(f"  {pattern_type.value:<10} {pattern.width}x{pattern.height} in {elapsed:.2f}s -> {path}")


if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else "demo_output")
