"""signature_mouse: turn a scanned signature into ordered pen strokes.

Layers (leaf-first):
    - utils:      logging, atomic file I/O, pydantic config schemas, geometry
    - vectorizer: binarize → morphology → regions → skeleton → tracer → polyline
    - vector:     SignaturePath container plus SVG/YAML serialization
    - replay:     pointer replay engine over an abstract input backend
    - scripts:    command-line entry points (analyze, replay)

The vectorizer imports only the SignaturePath container from vector and never
touches replay or scripts; every stage works on in-memory numpy arrays.
"""

__version__ = "1.0.0"
