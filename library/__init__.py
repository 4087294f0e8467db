"""library/ -- Per-account book collection: models, persistence, owner-scoped service.

Layer rule: library/ may import from auth/ and core/. It does NOT import from
api/. auth/ never imports from library/.
"""
