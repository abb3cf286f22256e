"""
PsycheValuator backend: psychological test authoring, anonymous test taking,
AI trait analysis and manual review.
"""
