"""Terminal-first 3D drone flight simulator package.

Architecture highlights:
- Core (physics, camera, software renderer) owns no I/O and exposes a pixel buffer
- Plugin-style registries for world variants and front-ends
- Curses terminal front-end with braille/block/ASCII glyphs, plus a Matplotlib viewer
- CLI entrypoint via ``python -m flight_sim.run_sim``
"""
