"""
sponsorwall.render — Turning a sorted sponsor list into SVG and PNG artifacts.

Submodules:
  presets   — built-in badge presets, default tiers, default CSS
  images    — avatar resize cache, SVG rasterizer, fallback avatar
  badge     — one sponsor as a clipped, linked SVG fragment
  composer  — append-only SVG document accumulator with grid layout
  tiers     — default renderer: one titled block per tier
  circles   — alternate renderer: packed circles sized by contribution
  renderers — name → renderer registry
  output    — writes json / svg / png artifacts to the output directory
"""
