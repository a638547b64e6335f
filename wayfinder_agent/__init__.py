"""
Wayfinder Agent - tool-using conversational agent for venue navigation.

A model provider and a set of venue tools are driven by a bounded
orchestration loop with a persistent, provider-neutral history.
"""

__version__ = "0.1.0"
