"""Expansion-timeline engine.

Three mutually exclusive strategies map elapsed cosmic time to scale factor:
a tabulated flat LambdaCDM integration, closed-form de Sitter growth, and a
linear toy model. ExpansionEngine owns one of them at a time.
"""
