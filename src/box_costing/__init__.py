"""
Box Costing Package

Costing and structural calculation engine for corrugated boxes and sheets.
Resolves sheet layout, layer weights, paper rates and BS/ECT/BCT for a quote line.
"""

__version__ = "1.0.0"
