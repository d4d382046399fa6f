"""Bundled mathematics skill tree: 15 nodes across five categories.

Used when the host application does not supply its own catalog, and by
the integrity tests.  Edges mirror the prerequisites one-to-one.
"""

from __future__ import annotations

DEFAULT_NODES: list[dict] = [
    # Algebra
    {"id": "node-1", "title": "Linear Equations", "category": "algebra",
     "position": 1, "base_xp": 50, "prerequisites": []},
    {"id": "node-2", "title": "Quadratic Equations", "category": "algebra",
     "position": 2, "base_xp": 60, "prerequisites": ["node-1"]},
    {"id": "node-3", "title": "Systems of Equations", "category": "algebra",
     "position": 3, "base_xp": 70, "prerequisites": ["node-2"], "is_checkpoint": True},
    # Geometry
    {"id": "node-4", "title": "Triangles", "category": "geometry",
     "position": 4, "base_xp": 55, "prerequisites": ["node-3"]},
    {"id": "node-5", "title": "Circles", "category": "geometry",
     "position": 5, "base_xp": 55, "prerequisites": ["node-3"]},
    {"id": "node-6", "title": "Area & Volume", "category": "geometry",
     "position": 6, "base_xp": 65, "prerequisites": ["node-4", "node-5"],
     "is_checkpoint": True},
    # Calculus
    {"id": "node-7", "title": "Limits", "category": "calculus",
     "position": 7, "base_xp": 75, "prerequisites": ["node-6"]},
    {"id": "node-8", "title": "Derivatives", "category": "calculus",
     "position": 8, "base_xp": 80, "prerequisites": ["node-7"]},
    {"id": "node-9", "title": "Integrals", "category": "calculus",
     "position": 9, "base_xp": 85, "prerequisites": ["node-8"], "is_checkpoint": True},
    # Statistics
    {"id": "node-10", "title": "Descriptive Statistics", "category": "statistics",
     "position": 10, "base_xp": 60, "prerequisites": ["node-9"]},
    {"id": "node-11", "title": "Data Distribution", "category": "statistics",
     "position": 11, "base_xp": 65, "prerequisites": ["node-9"]},
    {"id": "node-12", "title": "Probability", "category": "statistics",
     "position": 12, "base_xp": 70, "prerequisites": ["node-10", "node-11"],
     "is_checkpoint": True},
    # Trigonometry and logic
    {"id": "node-13", "title": "Trigonometry", "category": "trigonometry",
     "position": 13, "base_xp": 75, "prerequisites": ["node-12"]},
    {"id": "node-14", "title": "Trigonometric Identities", "category": "trigonometry",
     "position": 14, "base_xp": 80, "prerequisites": ["node-12"]},
    {"id": "node-15", "title": "Mathematical Logic", "category": "logic",
     "position": 15, "base_xp": 90, "prerequisites": ["node-13", "node-14"],
     "is_checkpoint": True},
]

DEFAULT_EDGES: list[dict] = [
    {"from": "node-1", "to": "node-2"},
    {"from": "node-2", "to": "node-3"},
    {"from": "node-3", "to": "node-4"},
    {"from": "node-3", "to": "node-5"},
    {"from": "node-4", "to": "node-6"},
    {"from": "node-5", "to": "node-6"},
    {"from": "node-6", "to": "node-7"},
    {"from": "node-7", "to": "node-8"},
    {"from": "node-8", "to": "node-9"},
    {"from": "node-9", "to": "node-10"},
    {"from": "node-9", "to": "node-11"},
    {"from": "node-10", "to": "node-12"},
    {"from": "node-11", "to": "node-12"},
    {"from": "node-12", "to": "node-13"},
    {"from": "node-12", "to": "node-14"},
    {"from": "node-13", "to": "node-15"},
    {"from": "node-14", "to": "node-15"},
]
