"""Command-line entry points.

    - analyze: image → SVG/YAML strokes (``signature-analyze``)
    - replay:  SVG/YAML strokes → pointer motion (``signature-replay``)
"""
