"""
Agente de Saúde IA Backend

Groups reported health cases by disease and neighborhood and relays them
to a language model for mitigation recommendations.
"""

__version__ = "1.0.0"
