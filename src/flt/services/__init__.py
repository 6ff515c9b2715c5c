"""
Progression services: unlock rules, tree building, category gating,
task generation, persistence and the progression store.
"""
