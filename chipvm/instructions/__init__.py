"""Instruction handlers grouped by family.

Every handler has the signature ``(state, instruction) -> (state, outcome)``.
"""
